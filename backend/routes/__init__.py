# REST endpoints; each module exposes an APIRouter named ``router``.
