import logging
import os
import sys

# Add project root to sys.path
sys.path.append(os.path.join(os.path.dirname(__file__), "../"))

from recipebox.auth.sessions import purge_expired
from recipebox.db import Database
from recipebox.settings import settings

logger = logging.getLogger("recipebox.scripts.purge")


def main() -> int:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    database = Database.from_url(settings.database_url)
    session = database.session()
    try:
        counts = purge_expired(session)
        print(f"Removed {counts['sessions']} expired sessions, {counts['verifications']} verifications.")
        return 0
    finally:
        session.close()
        database.dispose()


if __name__ == "__main__":
    sys.exit(main())
