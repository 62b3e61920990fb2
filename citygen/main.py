import argparse
import logging
import sys

from citygen.city_generator import CityGenerator
from citygen.config import CityConfig
from citygen.materializer import TileRegistry


def setup_logging(level=logging.INFO):
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s | %(message)s",
        datefmt="%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Procedural Voronoi/MST city layout generator")
    parser.add_argument("--width", type=int, default=50)
    parser.add_argument("--height", type=int, default=50)
    parser.add_argument("--seed", type=int, default=42)
    parser.add_argument("--spacing", type=int, default=15, help="Voronoi site spacing")
    parser.add_argument("--jitter", type=int, default=3, help="Voronoi site jitter")
    parser.add_argument("--noise-scale", type=float, default=10.0)
    parser.add_argument("--threshold", type=float, default=0.8, help="Branch point noise threshold")
    parser.add_argument("--no-edges", action="store_true", help="Skip map edge connections")
    parser.add_argument("--output", default="city_layout.json")
    parser.add_argument("--verbose", action="store_true")
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    setup_logging(logging.DEBUG if args.verbose else logging.INFO)

    print("=== City Layout Generator ===\n")
    config = CityConfig(
        width=args.width, height=args.height, seed=args.seed,
        site_spacing=args.spacing, site_jitter=args.jitter,
        noise_scale=args.noise_scale, branch_threshold=args.threshold,
        ensure_edge_connections=not args.no_edges,
    )
    city = CityGenerator(config)
    registry = TileRegistry()

    # Hand events over between stages, one batch at a time
    for _ in city.run_stages():
        while registry.pump(city.events, city.grid):
            pass
    registry.flush(city.events, city.grid)

    layout = city.layout
    print(f"\nGenerated {config.width}x{config.height} city with {len(layout.roads)} road tiles:")
    for name, count in sorted(layout.counts().items(), key=lambda x: -x[1]):
        print(f"  {name}: {count}")
    print(f"Materializer holds {len(registry.tiles)} tiles "
          f"({registry.placed} placed, {registry.removed} removed).")

    city.export_to_json(args.output)
    print(f"Layout exported to {args.output}")


if __name__ == "__main__":
    main()
