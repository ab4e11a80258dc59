from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI

from .bootstrap import build_components
from .facade import create_content_router
from .settings.store import SettingsStore


def _repo_root() -> Path:
    return Path(__file__).resolve().parents[2]


def create_app(*, repo_root: Path | None = None) -> FastAPI:
    repo_root = repo_root or _repo_root()
    data_dir = repo_root / "data"
    config_path = data_dir / "config.json"

    store = SettingsStore(path=config_path)
    components = build_components(store.load(), base_dir=repo_root)
    facade = components.facade

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        facade.start()
        init_task = asyncio.create_task(facade.initialize(), name="content-initialize")
        try:
            yield
        finally:
            await facade.close()
            if not init_task.done():
                init_task.cancel()

    app = FastAPI(title="skatefit-content-sync", lifespan=lifespan)
    app.include_router(create_content_router(facade=facade))

    app.state.settings_store = store
    app.state.content = components
    app.state.repo_root = repo_root
    return app


app = create_app()
