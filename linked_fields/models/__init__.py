"""ORM models, embedded record shapes and linked field contracts."""
