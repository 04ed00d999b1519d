"""Example: drive the service layer directly (no Flask).

Controllers are thin; the rules live in the services wired by the container.
"""

import importlib
from datetime import datetime

from smart_office.attendance.model import CheckInAttempt
from smart_office.config import get_settings_module
from smart_office.container import build_container
from smart_office.core.enums import WorkStatus
from smart_office.verification.model import GpsPayload


def main():
    settings = importlib.import_module(get_settings_module())
    container = build_container(db_config=settings.DB_CONFIG, engine=settings.ENGINE)

    print(container.attendance_service.wfh_quota(user_id=1).to_dict())

    outcome = container.attendance_service.check_in(
        CheckInAttempt(
            user_id=1,
            office_id=1,
            claimed_at=datetime.now(),
            status=WorkStatus.OFFICE,
            payload=GpsPayload(latitude=37.7750, longitude=-122.4194, accuracy_m=10),
        )
    )
    print(outcome.to_dict())


if __name__ == "__main__":
    main()
