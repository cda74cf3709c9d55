# Import models here so Alembic can discover metadata.
from app.models.user import User  # noqa: F401

# Pipeline + commission ledger
from app.models.opportunity import Opportunity  # noqa: F401
from app.models.commission_record import CommissionRecord  # noqa: F401
from app.models.timesheet_entry import TimesheetEntry  # noqa: F401
