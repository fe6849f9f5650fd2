"""
Lead Qualification Backend — Uvicorn Launcher

Usage:
    python run.py
    python run.py --port 8000 --reload
    python run.py --sweep            # mark idle sessions abandoned, then exit
"""
import argparse
import uvicorn

from app.config import get_settings


def run_sweep(threshold_minutes):
    """One-shot abandonment sweep, for cron."""
    from app.database import SessionLocal, init_db
    from app.services.reporting_service import ReportingService

    init_db()
    db = SessionLocal()
    try:
        marked = ReportingService.mark_abandoned(db, threshold_minutes)
    finally:
        db.close()
    print(f"Marked {len(marked)} session(s) abandoned (idle > {threshold_minutes} min)")


def main():
    settings = get_settings()

    parser = argparse.ArgumentParser(description="Lead Qualification Backend Server")
    parser.add_argument("--host", default="0.0.0.0", help="Bind host (default: 0.0.0.0)")
    parser.add_argument("--port", type=int, default=8000, help="Bind port (default: 8000)")
    parser.add_argument("--reload", action="store_true", help="Enable hot reload for development")
    parser.add_argument("--workers", type=int, default=1, help="Number of workers (default: 1)")
    parser.add_argument("--sweep", action="store_true", help="Run the abandonment sweep and exit")
    parser.add_argument(
        "--threshold", type=int, default=settings.ABANDONMENT_THRESHOLD_MINUTES,
        help=f"Idle minutes before a session is abandoned (default: {settings.ABANDONMENT_THRESHOLD_MINUTES})",
    )

    args = parser.parse_args()

    if args.sweep:
        run_sweep(args.threshold)
        return

    print(f"""
    ========================================================
      Lead Qualification -- Backend Server ({settings.ENVIRONMENT})
      API:       http://{args.host}:{args.port}
      Docs:      http://localhost:{args.port}/docs
      Slots:     {settings.SLOT_LOOKAHEAD_DAYS} days ahead, {settings.TIMEZONE}
      Stage merge: {'monotonic' if settings.FUNNEL_STAGE_MONOTONIC else 'last write wins'}
    ========================================================
    """)

    uvicorn.run(
        "app.main:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        workers=args.workers,
        log_level="debug" if settings.DEBUG else "info",
    )


if __name__ == "__main__":
    main()
