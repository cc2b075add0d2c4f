"""
Скрипт для запуска миграций Alembic.
Использование: python scripts/migrate_db.py [upgrade|downgrade|current|history] [revision]
"""

import sys
from pathlib import Path

from alembic import command
from alembic.config import Config

from rescue.core.config import settings

PROJECT_DIR = Path(__file__).resolve().parent.parent


def run_migration(command_name: str, revision: str = None):
    """Запускает команду Alembic"""
    alembic_cfg = Config(str(PROJECT_DIR / "alembic.ini"))
    alembic_cfg.set_main_option("script_location", str(PROJECT_DIR / "alembic"))

    if command_name == "upgrade":
        command.upgrade(alembic_cfg, revision or "head")
    elif command_name == "downgrade":
        if not revision:
            print("Для downgrade требуется указать ревизию")
            sys.exit(1)
        command.downgrade(alembic_cfg, revision)
    elif command_name == "current":
        command.current(alembic_cfg)
    elif command_name == "history":
        command.history(alembic_cfg)
    else:
        print(f"Неизвестная команда: {command_name}")
        sys.exit(1)


if __name__ == "__main__":
    if len(sys.argv) < 2:
        print("Использование: python scripts/migrate_db.py <command> [revision]")
        print("Команды:")
        print("  upgrade [revision]   - применить миграции (по умолчанию head)")
        print("  downgrade [revision] - откатить миграции")
        print("  current              - показать текущую ревизию")
        print("  history              - показать историю миграций")
        sys.exit(1)

    command_name = sys.argv[1]
    revision = sys.argv[2] if len(sys.argv) > 2 else None

    if settings.DATABASE_URL:
        print("Подключение к БД: DATABASE_URL")
    else:
        print(f"Подключение к БД: {settings.POSTGRES_HOST}:{settings.POSTGRES_PORT}/{settings.POSTGRES_DB}")
    print(f"Запуск миграции: {command_name} {revision or '(head)'}")
    run_migration(command_name, revision)
