"""
Main pipeline orchestration for the pizza sales reporting pipeline.
"""
import logging
import argparse
import time
import traceback
from datetime import datetime

from pizza_sales.config import Config, SOURCES
from pizza_sales.db.engine import create_db_engine, init_db
from pizza_sales.db.models import Base
from pizza_sales.ingestion.loader import load_source_data, load_source_tables, stage_source_data
from pizza_sales.transformation.joins import prepare_dataset
from pizza_sales.transformation.quality import (
    run_data_quality_checks,
    apply_data_fixes,
    has_quality_issues,
    count_quality_issues
)
from pizza_sales.transformation.reports import run_reports
from pizza_sales.loading.writer import write_reports as write_report_tables, export_results_to_csv

logger = logging.getLogger(__name__)


def run_pipeline(config_file='config.ini', source=None, quality_check=None, stage_source=None,
                 write_reports=None, export_csv=False):
    """
    Load the source tables, compute every report and persist the results.

    Arguments left as None fall back to the [PIPELINE] config settings.

    Returns:
        dict: Run statistics; on success 'reports' holds the report frames
    """
    start_time = time.time()
    statistics = {
        'start_time': datetime.now().strftime('%Y-%m-%d %H:%M:%S'),
        'status': 'failed',
        'stages': {},
    }

    try:
        logger.info("Starting pizza sales reporting pipeline")

        config = Config(config_file)

        # Override config settings if provided
        if source is not None:
            config.config['PIPELINE']['source'] = source
        if quality_check is not None:
            config.config['PIPELINE']['quality_check'] = str(quality_check).lower()
        if stage_source is not None:
            config.config['PIPELINE']['stage_source'] = str(stage_source).lower()
        if write_reports is not None:
            config.config['PIPELINE']['write_reports'] = str(write_reports).lower()

        run_source = config.get_source()
        run_quality_check = config.is_quality_check_enabled()

        logger.info(f"Pipeline mode: source={run_source}, quality_check={run_quality_check}")

        engine = create_db_engine(config)
        init_db(engine, Base)

        # ---- Ingestion
        stage_start = time.time()

        if run_source == 'csv':
            raw_data = load_source_data(config)
        else:
            raw_data = load_source_tables(engine)

        statistics['stages']['ingestion'] = {
            'source': run_source,
            'rows_processed': {table: len(df) for table, df in raw_data.items()},
            'duration': time.time() - stage_start
        }

        # ---- Quality checks
        if run_quality_check:
            stage_start = time.time()

            quality_results = run_data_quality_checks(raw_data)
            has_issues = has_quality_issues(quality_results)

            if has_issues:
                logger.info("Applying data quality fixes")
                raw_data = apply_data_fixes(raw_data, quality_results)

            statistics['stages']['quality_check'] = {
                'duration': time.time() - stage_start,
                'issues_found': count_quality_issues(quality_results),
                'fixes_applied': has_issues
            }

        dataset = prepare_dataset(**raw_data)

        # ---- Staging of source tables
        if run_source == 'csv' and config.is_staging_enabled():
            stage_start = time.time()
            staged = stage_source_data(engine, dataset)
            statistics['stages']['staging'] = {
                'duration': time.time() - stage_start,
                'rows_staged': staged
            }

        # ---- Reporting
        stage_start = time.time()
        reports = run_reports(dataset, config.get_report_settings())

        statistics['stages']['reporting'] = {
            'duration': time.time() - stage_start,
            'reports_computed': len(reports),
            'rows_generated': {name: len(df) for name, df in reports.items()}
        }

        # ---- Loading
        if config.is_report_writing_enabled():
            stage_start = time.time()
            tables = write_report_tables(engine, reports)
            statistics['stages']['loading'] = {
                'duration': time.time() - stage_start,
                'tables_written': len(tables)
            }

        if export_csv:
            exported_files = export_results_to_csv(reports, config.get_output_path())
            statistics['stages']['export'] = {
                'files_exported': len(exported_files),
                'file_paths': exported_files
            }

        statistics['reports'] = reports
        statistics['status'] = 'success'
        logger.info("Pizza sales reporting pipeline completed successfully")

    except Exception as e:
        logger.error(f"Pipeline execution failed: {str(e)}")
        logger.error(traceback.format_exc())
        statistics['status'] = 'failed'
        statistics['error'] = str(e)

    statistics['duration'] = time.time() - start_time

    return statistics


def main():
    """Command line entry point."""
    parser = argparse.ArgumentParser(description='Pizza Sales Reporting Pipeline')
    parser.add_argument('--config', default='config.ini', help='Path to configuration file')
    parser.add_argument('--source', choices=SOURCES, help='Read source tables from CSV files or the database')
    parser.add_argument('--quality-check', action='store_true', help='Run data quality checks')
    parser.add_argument('--no-quality-check', action='store_true', help='Skip data quality checks')
    parser.add_argument('--no-staging', action='store_true', help='Do not stage CSV sources into the database')
    parser.add_argument('--no-write-reports', action='store_true', help='Do not write report tables to the database')
    parser.add_argument('--export-csv', action='store_true', help='Export reports to CSV files')
    parser.add_argument('--show', action='store_true', help='Print every report')

    args = parser.parse_args()

    quality_check = None
    if args.quality_check:
        quality_check = True
    elif args.no_quality_check:
        quality_check = False

    results = run_pipeline(
        config_file=args.config,
        source=args.source,
        quality_check=quality_check,
        stage_source=False if args.no_staging else None,
        write_reports=False if args.no_write_reports else None,
        export_csv=args.export_csv
    )

    print("\nPipeline Execution Summary:")
    print(f"Status: {results['status']}")
    print(f"Duration: {results['duration']:.2f} seconds")

    if results['status'] == 'failed' and 'error' in results:
        print(f"Error: {results['error']}")

    for stage, stats in results.get('stages', {}).items():
        print(f"\n{stage.capitalize()} stage:")
        for key, value in stats.items():
            if key not in ('rows_processed', 'rows_generated', 'rows_staged', 'file_paths'):
                print(f"  {key}: {value}")

    if args.show:
        for name, df in results.get('reports', {}).items():
            print(f"\n== {name} ==")
            print(df.to_string(index=False))

    return 0 if results['status'] == 'success' else 1


if __name__ == "__main__":
    raise SystemExit(main())
