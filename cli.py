import argparse
from pathlib import Path

import uvicorn

from certprep.config import LOG_LEVEL
from core.logging_setup import setup_console_logging

setup_console_logging(LOG_LEVEL)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Certification prep server tools")
    commands = parser.add_subparsers(dest="command", required=True)

    serve = commands.add_parser("serve", help="Run the API server")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=8000)

    commands.add_parser("init-db", help="Create database tables")

    load_bank = commands.add_parser("load-bank", help="Import exams from a JSON bank file")
    load_bank.add_argument("file", type=Path, help="Path to a .json bank (one exam or a list)")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)

    if args.command == "serve":
        uvicorn.run("certprep.app:app", host=args.host, port=args.port, log_level="info")
        return

    from certprep.database import SessionLocal, init_db

    init_db()
    if args.command == "init-db":
        print("Database initialized")
        return

    from certprep.services.exam_service import load_bank_file

    db = SessionLocal()
    try:
        exams = load_bank_file(db, args.file)
    finally:
        db.close()
    for exam in exams:
        print(f"{exam.id}  {exam.title}")


if __name__ == "__main__":
    main()
