"""
Command line entry point for the food truck reporting queries.
"""
import logging
import argparse
import time
import traceback
from datetime import datetime
from truck_reporting.config import Config
from truck_reporting.dashboard import Dashboard
from truck_reporting.db.engine import create_db_engine
from truck_reporting.ingestion.loader import (
    check_sources,
    get_order_date_span,
    load_csv_extracts,
    read_source_tables
)
from truck_reporting.loading.writer import export_results_to_csv
from truck_reporting.queries.binder import ALL_COUNTRIES, DateRange
from truck_reporting.queries.catalog import get_query, list_queries
from truck_reporting.queries.runner import run_query
from truck_reporting.transformation.quality import run_data_quality_checks

logger = logging.getLogger(__name__)


def resolve_date_range(engine, config, start=None, end=None):
    """
    Pick the date range for filtered queries.

    Explicit start/end win; a missing bound falls back to the configured default
    and then to the span of the order data. Without any of these the queries
    run unfiltered on date.
    """
    if start is None or end is None:
        fallback = config.get_default_date_range()
        if fallback is None:
            fallback = get_order_date_span(engine, config.get_source_tables())
        if fallback is None:
            logger.warning("No date range available; date filters are disabled")
            return None
        start = fallback[0] if start is None else start
        end = fallback[1] if end is None else end

    return DateRange(start, end)


def run_reports(config_file='config.ini', query=None, dashboard=False, start=None, end=None,
                countries=None, sources_check=False, quality_check=False, quality_from_csv=False,
                export_csv=False, engine=None, config=None):
    start_time = time.time()
    statistics = {
        'start_time': datetime.now().strftime('%Y-%m-%d %H:%M:%S'),
        'status': 'failed',
        'stages': {},
        'results': {}
    }

    try:
        logger.info("Starting reporting run")

        if config is None:
            config = Config(config_file)

        if engine is None:
            engine = create_db_engine(config)

        sources = config.get_source_tables()

        # ---- Source diagnostics
        if sources_check:
            stage_start = time.time()
            diagnostics = check_sources(engine, sources)
            statistics['stages']['sources'] = {
                'duration': time.time() - stage_start,
                'missing_tables': [s for s, d in diagnostics.items() if not d['exists']],
                'missing_columns': {s: d['missing_columns'] for s, d in diagnostics.items()
                                    if d['exists'] and d['missing_columns']},
                'row_counts': {s: d['row_count'] for s, d in diagnostics.items()}
            }

        # ---- Data quality checks
        if quality_check:
            stage_start = time.time()
            if quality_from_csv:
                source_data = load_csv_extracts(config)
            else:
                source_data = read_source_tables(engine, sources)
            quality_results = run_data_quality_checks(source_data)
            statistics['stages']['quality_check'] = {
                'source': 'csv' if quality_from_csv else 'database',
                'duration': time.time() - stage_start,
                'issues_found': quality_results['total_issues'],
                'order_total_discrepancies':
                    quality_results.get('order_total_discrepancies', {}).get('discrepancy_count', 0)
            }

        # ---- Queries
        if query or dashboard:
            stage_start = time.time()
            accepted = get_query(query)['parameters'] if query else ('date_range', 'country')
            date_range = None
            if 'date_range' in accepted:
                date_range = resolve_date_range(engine, config, start, end)

            if query:
                result_df = run_query(
                    engine,
                    query,
                    date_range=date_range,
                    countries=countries if 'country' in accepted else None,
                    sources=sources,
                    empty_country_behavior=config.get_empty_country_behavior()
                )
                statistics['results'][query] = result_df
                errors = {}
            else:
                rendered = Dashboard().render(engine, config, date_range=date_range, countries=countries)
                statistics['results'].update(rendered['tiles'])
                statistics['kpis'] = rendered['kpis']
                errors = rendered['errors']

            statistics['stages']['queries'] = {
                'duration': time.time() - stage_start,
                'date_range': repr(date_range),
                'rows_returned': {name: len(df) for name, df in statistics['results'].items()},
                'empty_results': [name for name, df in statistics['results'].items() if df.empty],
                'failed_tiles': errors
            }

            if export_csv:
                exported_files = export_results_to_csv(statistics['results'], config.get_output_path())
                statistics['stages']['export'] = {
                    'files_exported': len(exported_files),
                    'file_paths': exported_files
                }

            if errors:
                raise RuntimeError(f"{len(errors)} dashboard tiles failed: {sorted(errors)}")

        statistics['status'] = 'success'
        logger.info("Reporting run completed successfully")

    except Exception as e:
        logger.error(f"Reporting run failed: {str(e)}")
        logger.error(traceback.format_exc())
        statistics['status'] = 'failed'
        statistics['error'] = str(e)

    statistics['duration'] = time.time() - start_time

    return statistics


def build_parser():
    parser = argparse.ArgumentParser(description='Food Truck Sales Reporting')
    parser.add_argument('--config', default='config.ini', help='Path to configuration file')
    parser.add_argument('--list', action='store_true', help='List catalog queries and exit')
    parser.add_argument('--query', help='Run a single catalog query')
    parser.add_argument('--dashboard', action='store_true', help='Run every dashboard tile')
    parser.add_argument('--start', help='Start date (YYYY-MM-DD), inclusive')
    parser.add_argument('--end', help='End date (YYYY-MM-DD), inclusive')
    parser.add_argument('--country', action='append', dest='countries', help='Country to include (repeatable; "all" disables the filter)')
    parser.add_argument('--all-countries', action='store_true', help='Do not filter on country')
    parser.add_argument('--check-sources', action='store_true', help='Describe and count the source relations')
    parser.add_argument('--quality-check', action='store_true', help='Run data quality checks on the sources')
    parser.add_argument('--quality-from-csv', action='store_true', help='Run quality checks on CSV extracts in input_dir')
    parser.add_argument('--export-csv', action='store_true', help='Export results to CSV files')
    return parser


def main(argv=None):
    """Command line entry point."""
    args = build_parser().parse_args(argv)

    if args.list:
        for name, label, description in list_queries():
            print(f"{name:<28} {label}: {description}")
        return 0

    countries = ALL_COUNTRIES if args.all_countries or not args.countries else args.countries

    # Default to the full dashboard when nothing specific was requested
    dashboard = args.dashboard or not (args.query or args.check_sources or args.quality_check or args.quality_from_csv)

    config = Config(args.config)
    config.setup_logging()

    results = run_reports(
        query=args.query,
        dashboard=dashboard and not args.query,
        start=args.start,
        end=args.end,
        countries=countries,
        sources_check=args.check_sources,
        quality_check=args.quality_check or args.quality_from_csv,
        quality_from_csv=args.quality_from_csv,
        export_csv=args.export_csv,
        config=config
    )

    # Print summary
    print("\nReporting Run Summary:")
    print(f"Status: {results['status']}")
    print(f"Duration: {results['duration']:.2f} seconds")

    if results['status'] == 'failed' and 'error' in results:
        print(f"Error: {results['error']}")

    for stage, stats in results.get('stages', {}).items():
        print(f"\n{stage.capitalize()} stage:")
        for key, value in stats.items():
            if key != 'file_paths':
                print(f"  {key}: {value}")

    if results.get('kpis'):
        print("\nKPIs:")
        for key, value in results['kpis'].items():
            print(f"  {key}: {value}")

    return 0 if results['status'] == 'success' else 1


if __name__ == "__main__":
    raise SystemExit(main())
