from fastapi import APIRouter

from app.api.callable import router as callable_router
from app.api.groups import router as groups_router

router = APIRouter()

router.include_router(callable_router)
router.include_router(groups_router)


@router.get("/", tags=["root"])
def read_root() -> dict[str, str]:
    return {"message": "Welcome to the Group Live API"}
