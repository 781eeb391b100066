import argparse
import sys
from pathlib import Path

from .core.config import settings
from .core.log import configure_logging


def _print_progress(value: float, text: str) -> None:
    filled = int(value // 5)
    sys.stderr.write(f"\r[{'#' * filled}{'.' * (20 - filled)}] {round(value):3d}% {text:<48}")
    sys.stderr.flush()
    if value >= 100:
        sys.stderr.write("\n")


def cmd_serve(args) -> int:
    import uvicorn

    uvicorn.run("carousel_studio.main:app", host=args.host, port=args.port,
                log_level=settings.LOG_LEVEL.lower())
    return 0


def cmd_generate(args) -> int:
    from .client.carousel import CarouselState
    from .client.export import export_pdf, export_selected_png
    from .client.poller import ClientError, JobPoller
    from .client.preferences import Preferences

    state = CarouselState()
    poller = JobPoller(args.api)
    payload = {"topic": args.topic, "tone": args.tone, "imageStyle": args.image_style, "count": args.count}
    try:
        state.load(poller.generate(payload, on_progress=_print_progress))
    except ClientError as e:
        sys.stderr.write("\n")
        print(f"error: {e}", file=sys.stderr)
        return 1

    if args.select:
        if not 1 <= args.select <= len(state.slides):
            print(f"error: --select must be between 1 and {len(state.slides)}", file=sys.stderr)
            return 2
        state.select(state.slides[args.select - 1].id)

    font = Preferences().get("font") or None
    try:
        if args.export == "png":
            print(export_selected_png(state, args.out, font_path=font))
        elif args.export == "pdf":
            print(export_pdf(state, args.out, font_path=font))
    except ClientError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1

    print(state.render())
    return 0


def cmd_prefs(args) -> int:
    from .client.preferences import Preferences

    prefs = Preferences()
    if args.key is None:
        for key, value in prefs.as_dict().items():
            print(f"{key}={value}")
    elif args.value is None:
        print(prefs.get(args.key, ""))
    else:
        prefs.set(args.key, args.value)
    return 0


def cmd_cache(args) -> int:
    from .client.asset_cache import AssetCache

    with AssetCache(args.api) as cache:
        stored = cache.install()
        removed = cache.activate()
    print(f"cached {stored}/{len(cache.shell)} shell assets in {cache.dir}")
    if removed:
        print(f"removed old caches: {', '.join(removed)}")
    return 0


def main(argv=None) -> int:
    argv = argv if argv is not None else sys.argv[1:]
    parser = argparse.ArgumentParser(prog="carousel-studio")
    sub = parser.add_subparsers(dest="cmd", required=True)

    p_serve = sub.add_parser("serve", help="Run the HTTP server")
    p_serve.add_argument("--host", default=settings.HOST)
    p_serve.add_argument("--port", type=int, default=settings.PORT)
    p_serve.set_defaults(func=cmd_serve)

    p_gen = sub.add_parser("generate", help="Generate a carousel and optionally export it")
    p_gen.add_argument("--api", default=settings.API_BASE_URL)
    p_gen.add_argument("--topic", required=True)
    p_gen.add_argument("--tone", default="professional")
    p_gen.add_argument("--image-style", default="illustration")
    p_gen.add_argument("--count", type=int, default=5)
    p_gen.add_argument("--select", type=int, help="1-based slide to select before a PNG export")
    p_gen.add_argument("--export", choices=("png", "pdf"))
    p_gen.add_argument("--out", type=Path, default=None)
    p_gen.set_defaults(func=cmd_generate)

    p_prefs = sub.add_parser("prefs", help="Show or change client preferences")
    p_prefs.add_argument("key", nargs="?")
    p_prefs.add_argument("value", nargs="?")
    p_prefs.set_defaults(func=cmd_prefs)

    p_cache = sub.add_parser("cache", help="Refresh the offline copy of the app shell")
    p_cache.add_argument("--api", default=settings.API_BASE_URL)
    p_cache.set_defaults(func=cmd_cache)

    args = parser.parse_args(argv)
    configure_logging()
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
