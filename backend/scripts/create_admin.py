from dotenv import load_dotenv
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

load_dotenv(".env")

import argparse
import logging

from app.core.database import Base, SessionLocal, engine
from app.models import catalog, support, user  # noqa: F401
from app.services.accounts import ensure_admin


def main() -> int:
    parser = argparse.ArgumentParser(description="Promote or create a storefront admin account.")
    parser.add_argument("email")
    parser.add_argument("--name", default=None)
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s %(message)s")
    Base.metadata.create_all(bind=engine)

    db = SessionLocal()
    try:
        admin, changed = ensure_admin(db, email=args.email, name=args.name)
    finally:
        db.close()

    if changed:
        print(f"Admin ready: {admin.email} ({admin.id})")
    else:
        print(f"Admin user already exists: {admin.email}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
