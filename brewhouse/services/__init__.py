"""Service layer: business logic over a SQLAlchemy session."""
