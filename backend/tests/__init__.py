# Register every SQLModel table before any test database is created
import tournament_scheduler.models  # noqa: F401
