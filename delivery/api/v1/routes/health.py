from fastapi import APIRouter

router = APIRouter()


@router.get("/up")
async def health():
    return {"status": "ok"}
