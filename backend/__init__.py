# backend -- FastAPI server + SQL persistence
#
# Modules:
#   app          -- FastAPI application factory, lifespan, error mapping
#   database     -- PostgreSQL / SQLite async engine
#   models       -- SQLAlchemy ORM models (users, startups, interests, events, ...)
#   schemas      -- Pydantic request/response/record schemas
#   responses    -- JSON response class that strips password fields
#   dependencies -- storage / analyzer lookup from app.state
#   seed         -- optional sample data
#   routes/      -- API endpoints under /api
