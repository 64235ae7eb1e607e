from sqlalchemy.orm import declarative_base

# Shared declarative base, every model in app/models registers its table here
Base = declarative_base()
