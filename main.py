"""Deductive Design — Entry Point.

Usage::

    python main.py list
    python main.py create <name> [theme]
    python main.py export <project-id> <file.json>
    python main.py import <file.json>
    python main.py log <file.json>
"""
import sys

from deductive_design.application import create_app_state, create_application
from deductive_design.export.json_export import ProjectImportError

USAGE = __doc__.split("Usage::", 1)[1]


def _print_projects(state) -> None:
    for meta in state.projects:
        marker = "*" if meta.id == state.current_project_id else " "
        print(f"{marker} {meta.id}  {meta.name}  [{meta.theme}]  {meta.updated_at}")


def main(argv: list[str]) -> int:
    create_application(argv)
    args = argv[1:]
    if not args:
        print(USAGE, file=sys.stderr)
        return 2

    state = create_app_state()
    state.initialize()
    try:
        command = args[0]
        if command == "list":
            _print_projects(state)
        elif command == "create" and len(args) in (2, 3):
            meta = state.create_project(args[1], args[2] if len(args) == 3 else "")
            print(meta.id)
        elif command == "export" and len(args) == 3:
            if not state.export_project_to_file(args[1], args[2]):
                print(f"Unknown project: {args[1]}", file=sys.stderr)
                return 1
        elif command == "import" and len(args) == 2:
            try:
                meta = state.import_project_from_file(args[1])
            except (OSError, ProjectImportError) as exc:
                print(f"Import failed: {exc}", file=sys.stderr)
                return 1
            print(meta.id)
        elif command == "log" and len(args) == 2:
            log = state.export_process_log_to_file(args[1])
            print(f"{len(log.research_jobs)} research / {len(log.generate_jobs)} generate job(s)")
        else:
            print(USAGE, file=sys.stderr)
            return 2
    finally:
        state.shutdown()
    return 0


def run() -> None:
    sys.exit(main(sys.argv))


if __name__ == "__main__":
    run()
