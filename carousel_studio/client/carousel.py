from typing import List, Optional

from ..common.schemas import GenerationMeta, GenerationResult, Slide


class CarouselState:
    """Everything the editor knows: ordered slides, selection, meta and the
    status line. Mutations go through the methods below; ``render()`` is the
    one way to draw it.
    """

    def __init__(self):
        self.slides: List[Slide] = []
        self.selected_id: Optional[str] = None
        self.meta: Optional[GenerationMeta] = None
        self.status: str = ""
        self.status_is_error: bool = False

    def set_status(self, message: str, is_error: bool = False) -> None:
        self.status = message
        self.status_is_error = is_error

    @property
    def selected(self) -> Optional[Slide]:
        return next((s for s in self.slides if s.id == self.selected_id), None)

    def index_of(self, slide_id: str) -> int:
        return next((i for i, s in enumerate(self.slides) if s.id == slide_id), -1)

    def load(self, result: GenerationResult) -> None:
        self.slides = [s.model_copy() for s in result.slides]
        self.meta = result.meta
        self.selected_id = self.slides[0].id if self.slides else None
        self.set_status(f"Generated {len(self.slides)} slides for “{result.meta.topic}”.")

    def select(self, slide_id: str) -> bool:
        if self.index_of(slide_id) < 0:
            return False
        self.selected_id = slide_id
        return True

    def reorder(self, source_id: str, target_id: str) -> bool:
        """Move ``source_id`` into the position ``target_id`` occupies now."""
        if not source_id or source_id == target_id:
            return False
        source_index = self.index_of(source_id)
        target_index = self.index_of(target_id)
        if source_index < 0 or target_index < 0:
            return False

        moved = self.slides.pop(source_index)
        self.slides.insert(target_index, moved)
        self.set_status("Slide order updated.")
        return True

    def edit(self, headline: str, body: str, cta: str, image_url: str) -> bool:
        selected = self.selected
        if selected is None:
            return False

        fields = [(v or "").strip() for v in (headline, body, cta, image_url)]
        if not all(fields):
            self.set_status("All slide fields are required.", True)
            return False

        selected.headline, selected.body, selected.cta, selected.imageUrl = fields
        self.set_status("Slide saved.")
        return True

    def render(self) -> str:
        lines = []
        for index, slide in enumerate(self.slides, start=1):
            marker = "*" if slide.id == self.selected_id else " "
            lines.append(f"{marker}[{index}] {slide.headline}")
            lines.append(f"      {slide.cta}")
        if not lines:
            lines.append("No slides yet.")
        if self.status:
            lines.append(("! " if self.status_is_error else "") + self.status)
        return "\n".join(lines)
