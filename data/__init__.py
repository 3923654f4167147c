# data -- storage implementations (in-memory, SQLAlchemy)
