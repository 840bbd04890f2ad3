"""
Main entry point for InsightStream.
Usage: python main.py --file <csv_path> [--question "..."] [options]
"""

import argparse
import logging
from pathlib import Path
from datetime import datetime
from insightstream.agents.coordinator_agent import CoordinatorAgent
from insightstream.config import CONFIG

logger = logging.getLogger(__name__)

def setup_logging(debug: bool) -> None:
    """Log to logs/app.log and the console."""
    log_dir = Path(CONFIG.log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.FileHandler(log_dir / 'app.log'),
            logging.StreamHandler()
        ]
    )

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description='InsightStream - CSV analysis with a streaming assistant and PDF reports'
    )

    # File input
    parser.add_argument(
        '--file', '-f',
        type=str,
        required=True,
        help='Path to CSV file'
    )

    # Conversation
    parser.add_argument(
        '--question', '-q',
        action='append',
        default=[],
        help='Question for the assistant (repeatable)'
    )

    parser.add_argument(
        '--execute-query',
        action='store_true',
        help='Run the query suggested by the assistant'
    )

    # Output options
    parser.add_argument(
        '--output-dir', '-o',
        type=str,
        default=CONFIG.output_dir,
        help=f'Directory for the report and exports (default: {CONFIG.output_dir})'
    )

    parser.add_argument(
        '--no-report',
        action='store_true',
        help='Skip PDF report export'
    )

    parser.add_argument(
        '--export-csv',
        action='store_true',
        help='Re-export the parsed data as CSV'
    )

    # LLM configuration
    parser.add_argument(
        '--llm-base-url',
        type=str,
        help='OpenAI-compatible gateway base URL'
    )

    parser.add_argument(
        '--llm-model',
        type=str,
        help='LLM model name'
    )

    parser.add_argument(
        '--llm-api-key',
        type=str,
        help='API key for the gateway (if required)'
    )

    parser.add_argument(
        '--query-endpoint',
        type=str,
        help='URL of the read-only query execution service'
    )

    # Branding
    parser.add_argument(
        '--company-name',
        type=str,
        help='Company name for report branding'
    )

    parser.add_argument(
        '--primary-color',
        type=str,
        help='Primary color (hex format)'
    )

    # System options
    parser.add_argument(
        '--debug',
        action='store_true',
        help='Enable debug mode'
    )

    return parser

def main(argv=None):
    """Main execution entry point."""
    args = build_parser().parse_args(argv)

    CONFIG.debug_mode = args.debug or CONFIG.debug_mode
    setup_logging(CONFIG.debug_mode)

    # Validate input file
    input_file = Path(args.file)
    if not input_file.exists():
        logger.error(f"Input file not found: {input_file}")
        return False

    if args.company_name:
        CONFIG.branding.company_name = args.company_name
    if args.primary_color:
        CONFIG.branding.primary_color = args.primary_color

    llm_settings = {
        "base_url": args.llm_base_url,
        "model_name": args.llm_model,
        "api_key": args.llm_api_key,
        "query_endpoint": args.query_endpoint,
    }

    task = {
        "task_id": f"report_{datetime.now().timestamp()}",
        "file_path": str(input_file),
        "output_dir": args.output_dir,
        "questions": args.question,
        "execute_query": args.execute_query,
        "include_report": not args.no_report,
        "export_csv": args.export_csv,
        "llm_settings": {k: v for k, v in llm_settings.items() if v},
    }

    logger.info(f"Starting task: {task['task_id']}")
    logger.info(f"Input file: {input_file}")

    try:
        coordinator = CoordinatorAgent()
        result = coordinator.execute(task)
    except Exception as e:
        logger.error(f"Fatal error: {str(e)}", exc_info=True)
        return False

    if not result.success:
        logger.error(f"Task failed: {result.error}")
        return False

    ingest = result.data.get("ingest", {})
    report = result.data.get("report", {})

    print("\n" + "="*60)
    print("INSIGHTSTREAM RUN COMPLETE")
    print("="*60)
    print(f"Task ID: {task['task_id']}")
    print(f"Rows: {ingest.get('rows')}  Columns: {', '.join(ingest.get('columns', []))}")
    for turn in result.data.get("turns", []):
        print("-"*60)
        print(f"Q: {turn['question']}")
        if turn["success"]:
            print(turn.get("content", ""))
            if turn.get("query"):
                print(f"Suggested query: {turn['query']}")
        else:
            print(f"Assistant error: {turn['error']}")
    print("-"*60)
    if ingest.get("csv_export"):
        print(f"CSV export: {ingest['csv_export']}")
    if report:
        print(f"Report: {report.get('output_path')} ({report.get('page_count')} pages)")
    print(f"Duration: {result.duration_seconds:.2f} seconds")
    print("="*60 + "\n")

    return True

if __name__ == "__main__":
    import sys
    success = main()
    sys.exit(0 if success else 1)
