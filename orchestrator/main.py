from fastapi import FastAPI

from .api import router

app = FastAPI(title="Tool Orchestrator")
app.include_router(router)


@app.get("/health")
async def health():
    return {"ok": True}
