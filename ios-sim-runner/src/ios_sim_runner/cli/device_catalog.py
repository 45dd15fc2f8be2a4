from __future__ import annotations

import argparse
from typing import Optional, Sequence

import yaml

from ios_sim_runner.catalog import DeviceCatalog, DeviceNotFoundError, default_catalog


def _print_table(catalog: DeviceCatalog) -> None:
    rows = [
        (
            model.identifier,
            model.name,
            f"{model.screen_width_px}x{model.screen_height_px}" if model.simulator_capable else "-",
            DeviceCatalog.simulator_type_id(model),
        )
        for model in catalog
    ]
    header = ("id", "name", "screen", "simulator_type_id")
    widths = [max(len(header[i]), max(len(r[i]) for r in rows)) for i in range(len(header))]
    print(" | ".join(h.ljust(w) for h, w in zip(header, widths)))
    print("-+-".join("-" * w for w in widths))
    for row in rows:
        print(" | ".join(c.ljust(w) for c, w in zip(row, widths)))


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Inspect the iOS device model catalog.")
    parser.add_argument("--list", action="store_true", help="List every device model.")
    parser.add_argument(
        "--product_type",
        type=str,
        default=None,
        help="Print the model name for a hardware product type (e.g. iphone7,2).",
    )
    parser.add_argument(
        "--device_type",
        type=str,
        default=None,
        help="Resolve a device type (e.g. 'iphone 6', IPAD_PRO) and print it as YAML.",
    )
    args = parser.parse_args(argv)

    if not (args.list or args.product_type or args.device_type):
        parser.error("one of --list, --product_type or --device_type is required")

    catalog = default_catalog()
    if args.list:
        _print_table(catalog)
    if args.product_type:
        print(catalog.display_name_for_product_type(args.product_type))
    if args.device_type:
        try:
            model = catalog.resolve_by_identifier(args.device_type)
        except DeviceNotFoundError as e:
            print(str(e))
            return 2
        doc = {
            "id": model.identifier,
            "name": model.name,
            "screen": {"width": model.screen_width_px, "height": model.screen_height_px},
            "product_types": sorted(model.product_types),
            "simulator_type_id": DeviceCatalog.simulator_type_id(model),
        }
        print(yaml.safe_dump(doc, sort_keys=False, allow_unicode=True).rstrip())
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
