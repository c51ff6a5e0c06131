"""Command-line audience build over local signal and geography files."""

import argparse
import json
import sys

from loguru import logger

from config.defaults import MIN_SEGMENT_DISTRICTS
from config.logging_config import configure_logging
from config.settings import get_runtime_settings
from data.export import (
    extension_districts_frame, geo_units_frame, provider_impact_frame,
    validation_districts_frame,
)
from data.loader import load_file, load_segment_library_file, load_settings_file, load_workbook
from data.repository import InMemorySignalRepository, ResultStore
from data.validator import validate_cross_file, validate_geography, validate_signals
from engine.build_service import rescore_geo_units, run_build
from engine.coverage import calculate_coverage_metrics, calculate_derived_stats, summarize_tiers
from engine.explainer import explain_provider_impact, explain_validation
from engine.segment_discovery import suggest_extensions
from engine.validation_engine import resolve_min_agreement
from models.results import ExtensionResult


def parse_accuracy(raw: str) -> float:
    value = float(raw)
    if not 0 <= value <= 100:
        raise argparse.ArgumentTypeError(f"scale accuracy must be between 0 and 100, got {raw}")
    return value


def print_suggestions(suggestions):
    print("\n=== EXTENSION SUGGESTIONS ===")
    if not suggestions:
        print("(none)")
    for s in suggestions:
        print(
            f"{s.segment_key}: {s.label} - {s.match_percent}% match, "
            f"{s.districts_available_count} districts, providers {', '.join(s.providers) or '-'}"
        )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Audience construction build (validation or extension) plus geo unit scoring"
    )

    # Inputs
    parser.add_argument("--signals", help="Signals CSV/XLSX")
    parser.add_argument("--geography", help="Reference geography CSV/XLSX")
    parser.add_argument("--workbook", help="Single XLSX with Signals and Geography tabs")
    parser.add_argument("--settings", required=True, help="JSON object of audience_id -> settings record")
    parser.add_argument("--library", help="Segment library JSON (segments with adjacency, provider aliases)")

    # Build
    parser.add_argument("--audience_id", required=True)
    parser.add_argument("--anchor_key", required=True, help="Anchor segment key")
    parser.add_argument("--include", nargs="*", default=[], help="Extension segment keys")
    parser.add_argument("--mode", choices=["validation", "extension"], help="Override the settings' mode")
    parser.add_argument("--providers", nargs="*", help="Restrict to these providers")
    parser.add_argument("--confidence_threshold", type=float, default=0.5)
    parser.add_argument("--no_anchor_only", action="store_true",
                        help="Extension: do not count anchor-only support as inclusion")
    parser.add_argument("--min_districts", type=int, default=MIN_SEGMENT_DISTRICTS,
                        help="Districts a segment needs before it is suggested")
    parser.add_argument("--suggest", action="store_true",
                        help="Only list extension suggestions for the anchor")

    # Scoring
    parser.add_argument("--scale_accuracy", type=parse_accuracy, default=50.0)
    parser.add_argument("--units", type=int, default=200, help="Synthetic geo units to score")

    # Output
    parser.add_argument("--json", action="store_true", help="Print the full result as JSON")
    parser.add_argument("--log_level")
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level, force=True)

    if args.workbook:
        signals_df, geography_df = load_workbook(args.workbook)
    elif args.signals and args.geography:
        signals_df, geography_df = load_file(args.signals), load_file(args.geography)
    else:
        logger.error("Provide --workbook or both --signals and --geography")
        return 2

    reports = [
        validate_signals(signals_df),
        validate_geography(geography_df),
    ]
    if all(r.is_valid for r in reports):
        reports.append(validate_cross_file(signals_df, geography_df))
    for report in reports:
        for warning in report.warnings:
            logger.warning(warning)
        for error in report.errors:
            logger.error(error)
    if not all(r.is_valid for r in reports):
        return 1

    settings = load_settings_file(args.settings)
    library, aliases = load_segment_library_file(args.library) if args.library else ([], [])
    repository = InMemorySignalRepository.from_frames(
        signals_df, geography_df, settings=settings,
        max_rows_per_request=get_runtime_settings().page_size,
        segment_library=library, segment_aliases=aliases,
    )

    if args.suggest:
        suggestions = suggest_extensions(repository, args.anchor_key, min_districts=args.min_districts)
        if args.json:
            print(json.dumps([s.to_dict() for s in suggestions], indent=2))
        else:
            print_suggestions(suggestions)
        return 0

    store = ResultStore()

    logger.info("audience_id   = {}", args.audience_id)
    logger.info("anchor_key    = {}", args.anchor_key)
    logger.info("include       = {}", args.include or "-")
    logger.info("mode override = {}", args.mode or "-")

    audience_settings = settings.get(args.audience_id)
    if audience_settings is None:
        logger.error("No settings record for audience {} in {}", args.audience_id, args.settings)
        return 1

    kwargs = {"providers": args.providers}
    mode = args.mode or audience_settings.construction_mode
    if mode == "extension":
        kwargs["confidence_threshold"] = args.confidence_threshold
        kwargs["include_anchor_only"] = not args.no_anchor_only
        if not args.include and library:
            args.include = [
                s.segment_key
                for s in suggest_extensions(repository, args.anchor_key, min_districts=args.min_districts)
            ]
            logger.info("No --include given; extending with suggested segments {}", args.include or "-")

    result = run_build(
        args.audience_id, args.anchor_key, repository, store,
        included_segment_keys=args.include, mode=args.mode, **kwargs,
    )
    units = rescore_geo_units(args.audience_id, repository, args.scale_accuracy, store, count=args.units)

    if args.json:
        print(json.dumps({
            "result": result.to_dict(),
            "geo_units": [u.to_dict() for u in units],
        }, indent=2, default=str))
        return 0

    print("\n=== BUILD RESULT ===")
    if isinstance(result, ExtensionResult):
        totals = result.totals
        print(f"base_districts: {totals.base_districts}")
        print(f"included_districts: {totals.included_districts}")
        print(f"estimated_households: {totals.estimated_households:,}")
        print(f"avg_confidence: {totals.avg_confidence:.3f}")
        for stats in result.provider_stats:
            print("  " + explain_provider_impact(stats, get_runtime_settings().anchor_provider))
        print(provider_impact_frame(result).to_string(index=False))
        print(extension_districts_frame(result).head(10).to_string(index=False))
    else:
        min_agreement = resolve_min_agreement(
            audience_settings.validation_agreement_mode,
            audience_settings.validation_min_agreement,
            result.totals.contributing_providers_count,
        )
        for line in explain_validation(result, min_agreement):
            print(line)
        print(validation_districts_frame(result).head(10).to_string(index=False))

    coverage = calculate_coverage_metrics(audience_settings)
    derived = calculate_derived_stats(args.scale_accuracy)
    tiers = summarize_tiers(units)
    print("\n=== GEO UNITS ===")
    print(f"active_signals: {coverage.active_signals_count}")
    print(f"modelled_confidence: {coverage.modelled_confidence}")
    print(f"estimated_match_coverage: {coverage.estimated_match_coverage}")
    print(f"derived_audience_size: {derived.derived_audience_size:,}")
    print(f"tiers: {tiers.counts} (avg score {tiers.avg_score:.1f})")
    print(geo_units_frame(units).head(10).to_string(index=False))
    return 0


if __name__ == "__main__":
    sys.exit(main())
