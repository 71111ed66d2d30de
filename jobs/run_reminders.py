"""
Cron entry point for reminder dispatch and cleanup.

    python -m jobs.run_reminders morning     # 0 8 * * *
    python -m jobs.run_reminders noon        # 0 13 * * *
    python -m jobs.run_reminders night       # 0 20 * * *
    python -m jobs.run_reminders cleanup     # once a day
    python -m jobs.run_reminders all         # every slot, on demand
"""

import argparse
import json
import logging
import sys

import models  # noqa: F401
from config import LOG_LEVEL
from database import Base, SessionLocal, engine
from services.dispatcher import run_all_slots, run_slot
from services.push import FirebaseDelivery, init_firebase
from services.reconciler import run_cleanup
from services.reminder_store import ReminderSlot

COMMANDS = [slot.value for slot in ReminderSlot] + ["all", "cleanup"]


def main(argv=None, delivery=None) -> int:
    parser = argparse.ArgumentParser(description="Run medication reminder jobs")
    parser.add_argument("command", choices=COMMANDS)
    args = parser.parse_args(argv)

    logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    Base.metadata.create_all(bind=engine)

    db = SessionLocal()
    try:
        if args.command == "cleanup":
            result = run_cleanup(db)
        else:
            delivery = delivery or FirebaseDelivery(init_firebase())
            if args.command == "all":
                result = run_all_slots(db, delivery)
            else:
                result = run_slot(db, delivery, args.command).to_dict()
    finally:
        db.close()
    print(json.dumps(result, default=str))
    return 0


if __name__ == "__main__":
    sys.exit(main())
