from studio_scheduler.tests.fixtures import (  # noqa: F401
    custom_category,
    gateway,
    photography_catalog,
    photography_job,
    studio_catalog,
    studio_index,
    today,
    yesterday,
)
