"""
main.py — Bootstrap

1. Load tuning constants
2. Build the sandbox world (POIs + agents from data/sandbox.toml)
3. Either open the pygame window or run headless

    python main.py                          # interactive sandbox
    python main.py --headless --seconds 120 # console only
"""

import argparse
from core import tuning


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="GOAP agent sandbox")
    parser.add_argument("--headless", action="store_true",
                        help="simulate without a window and print overlay dumps")
    parser.add_argument("--seconds", type=float, default=60.0,
                        help="headless: simulated seconds to run")
    parser.add_argument("--dt", type=float, default=1.0 / 30.0,
                        help="headless: fixed step in seconds")
    parser.add_argument("--report-every", type=float, default=10.0,
                        help="headless: seconds between overlay dumps")
    parser.add_argument("--scene", default=None, help="sandbox TOML (default data/sandbox.toml)")
    parser.add_argument("--catalog", default=None, help="catalog TOML (default data/catalog.toml)")
    parser.add_argument("--tuning", default=None, help="tuning TOML (default data/goap_tuning.toml)")
    args = parser.parse_args(argv)

    tuning.load(args.tuning)

    if args.headless:
        from scenes.sandbox import run_headless
        run_headless(args.seconds, args.dt, args.report_every,
                     path=args.scene, catalog_path=args.catalog)
        return

    from core.app import App
    from scenes.goap_scene import GoapScene
    app = App(title="GOAP Sandbox")
    app.push_scene(GoapScene(args.scene, args.catalog))
    app.run()


if __name__ == "__main__":
    main()
