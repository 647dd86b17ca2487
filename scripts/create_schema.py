from sqlalchemy import inspect

from publisher_service.db import Base, engine
from publisher_service import models  # noqa: F401  registers the tables on Base


def main():
    existing = set(inspect(engine).get_table_names())
    missing = [name for name in Base.metadata.tables if name not in existing]
    if not missing:
        print("All tables already exist")
        return

    Base.metadata.create_all(bind=engine)
    print(f"Created tables: {', '.join(missing)}")


if __name__ == "__main__":
    main()
