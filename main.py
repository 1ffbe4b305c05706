"""
Backstube - CLI Entry Point
Verfügbarkeit, Kalender, Statistik und Archivierung direkt gegen die Datenbank
"""

import argparse
import asyncio
import json
import sys

from config.settings import EXPORT_DIR
from modules.shared.logging import app_logger


def parse_arguments(argv=None):
    """Parse Command Line Arguments"""
    parser = argparse.ArgumentParser(
        description="Laura's Backstube - Bestellverwaltung",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Beispiele:
  python main.py serve --port 8000
  python main.py verfuegbarkeit --datum 2025-06-14
  python main.py kalender --jahr 2025 --monat 6
  python main.py statistik --jahr 2025 --monat 6 --export csv
  python main.py archivieren

Datenbank: DATABASE_URL bzw. SQL_SERVER aus config/.env (sonst SQLite unter data/).
        """
    )
    subparsers = parser.add_subparsers(dest='command', required=True)

    serve = subparsers.add_parser('serve', help='API Server mit Scheduler starten')
    serve.add_argument('--host', default='0.0.0.0')
    serve.add_argument('--port', type=int, default=8000)
    serve.add_argument('--reload', action='store_true', help='Auto-Reload (Entwicklung)')

    availability = subparsers.add_parser('verfuegbarkeit', help='Wunschtermin prüfen')
    availability.add_argument('--datum', '-d', required=True, help='YYYY-MM-DD oder DD.MM.YYYY')

    calendar = subparsers.add_parser('kalender', help='Bestellungen pro Tag eines Monats')
    calendar.add_argument('--jahr', '-j', type=int, required=True)
    calendar.add_argument('--monat', '-m', type=int, required=True, choices=range(1, 13))

    stats = subparsers.add_parser('statistik', help='Umsatz-Report eines Monats')
    stats.add_argument('--jahr', '-j', type=int, required=True)
    stats.add_argument('--monat', '-m', type=int, required=True, choices=range(1, 13))
    stats.add_argument('--export', '-e', choices=['csv', 'json'], help='Export nach data/exports/')

    subparsers.add_parser('archivieren', help='Fertige Bestellungen älter als N Tage archivieren')

    return parser.parse_args(argv)


def _print_json(data):
    print(json.dumps(data, indent=2, ensure_ascii=False, default=str))


async def run_command(args, services) -> bool:
    """Führt ein Kommando aus (ausser serve). Gibt Erfolg zurück."""
    if args.command == 'verfuegbarkeit':
        result = await services.availability.evaluate(args.datum)
        _print_json(result.model_dump(mode='json'))
        return result.accepted

    if args.command == 'kalender':
        result = await services.calendar.aggregate(args.jahr, args.monat)
        _print_json(result.model_dump(mode='json'))
        return result.data_status.value != 'query_failed'

    if args.command == 'statistik':
        filename = f"buchhaltung_{args.jahr}_{args.monat:02d}"
        if args.export == 'csv':
            output_path = EXPORT_DIR / f"{filename}.csv"
            await services.export.export_csv(args.jahr, args.monat, output_path)
            print(f"✓ CSV exportiert: {output_path}")
            return True

        report = await services.revenue.build_report(args.jahr, args.monat)
        if args.export == 'json':
            output_path = EXPORT_DIR / f"{filename}.json"
            output_path.parent.mkdir(parents=True, exist_ok=True)
            with open(output_path, 'w', encoding='utf-8') as f:
                json.dump(services.export.report_to_export(report), f, indent=2, ensure_ascii=False)
            print(f"✓ JSON exportiert: {output_path}")
        else:
            _print_json(report.model_dump(mode='json'))
        return report.current.data_status.value != 'query_failed'

    if args.command == 'archivieren':
        result = await services.archive.auto_archive_old_orders()
        _print_json(result.model_dump(mode='json'))
        return result.success

    raise ValueError(f"Unbekanntes Kommando: {args.command}")


def run(args) -> bool:
    """Hauptfunktion"""
    if args.command == 'serve':
        import uvicorn
        uvicorn.run("api.server:create_app", factory=True, host=args.host, port=args.port,
                    reload=args.reload)
        return True

    from api.container import Services
    return asyncio.run(run_command(args, Services()))


def main():
    """Console Entry Point"""
    try:
        args = parse_arguments()
        success = run(args)
        sys.exit(0 if success else 1)

    except Exception as e:
        app_logger.error(f"FATAL ERROR: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
