from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from fastapi import FastAPI, HTTPException
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field, model_validator

from config import AppConfig, load_config
from feature_policy import FeaturePolicy, parse_tier
from library_actions import (
    ActionFailed,
    ActionOutcome,
    CollectionCreated,
    CollectionLimitReached,
    LibraryActions,
)
from library_store import LibraryStore
from logging_utils import setup_logger
from metadata_fetcher import MetadataFetcher
from models import Collection, SavedItem
from pipeline import (
    AlreadyExists,
    InvalidUrl,
    LimitReached,
    SaveOutcome,
    SaveReelPipeline,
    Success,
    outcome_message,
)
from url_normalizer import extract_shared_url

UNCATEGORIZED = "none"


class SaveRequest(BaseModel):
    url: str | None = None
    text: str | None = None

    @model_validator(mode="after")
    def _require_source(self) -> "SaveRequest":
        if not (self.url or self.text):
            raise ValueError("Provide url or text")
        return self


class ItemResponse(BaseModel):
    id: str
    url: str
    title: str
    thumbnail: str
    tags: list[str]
    created_at: int
    collection_id: int | None = None
    notes: str | None = None


class UpdateItemRequest(BaseModel):
    title: str = Field(..., min_length=1)
    notes: str | None = None
    tags: list[str] = Field(default_factory=list)
    collection_id: int | None = None


class ItemIdsRequest(BaseModel):
    ids: list[str] = Field(..., min_length=1)


class MoveItemsRequest(ItemIdsRequest):
    collection_id: int | None = None


class CollectionRequest(BaseModel):
    name: str = Field(..., min_length=1)
    color: str = Field("#FF6B9D", pattern=r"^#[0-9A-Fa-f]{6}([0-9A-Fa-f]{2})?$")
    icon: str = Field("📁", min_length=1, max_length=16)


class CollectionResponse(BaseModel):
    id: int
    name: str
    color: str
    icon: str
    item_count: int = 0


@dataclass
class ServiceRuntime:
    config: AppConfig
    store: LibraryStore
    policy: FeaturePolicy
    pipeline: SaveReelPipeline
    actions: LibraryActions


def build_store(config: AppConfig) -> LibraryStore:
    return LibraryStore(
        items_file=config.items_file,
        collections_file=config.collections_file,
        lock_file=config.library_lock_file,
    )


def build_runtime(config: AppConfig, *, fetcher: MetadataFetcher | None = None) -> ServiceRuntime:
    store = build_store(config)
    policy = FeaturePolicy(parse_tier(config.tier))
    fetcher = fetcher or MetadataFetcher(
        timeout_sec=config.fetch_timeout_sec,
        user_agent=config.fetch_user_agent,
    )
    return ServiceRuntime(
        config=config,
        store=store,
        policy=policy,
        pipeline=SaveReelPipeline(store=store, fetcher=fetcher, policy=policy),
        actions=LibraryActions(store=store, policy=policy),
    )


def _item_payload(item: SavedItem) -> dict[str, Any]:
    return item.to_row()


def _collection_payload(collection: Collection) -> dict[str, Any]:
    return {**collection.to_row(), "item_count": collection.item_count}


def _save_response(outcome: SaveOutcome) -> JSONResponse:
    body: dict[str, Any] = {"ok": False, "message": outcome_message(outcome)}
    if isinstance(outcome, Success):
        status_code = 201
        body.update(ok=True, outcome="saved", item=_item_payload(outcome.item))
    elif isinstance(outcome, AlreadyExists):
        status_code = 409
        body.update(outcome="already_exists", url=outcome.url)
    elif isinstance(outcome, LimitReached):
        status_code = 403
        body.update(outcome="limit_reached", max_allowed=outcome.max_allowed)
    elif isinstance(outcome, InvalidUrl):
        status_code = 400
        body.update(outcome="invalid_url")
    else:
        status_code = 500
        body.update(outcome="error")
    return JSONResponse(status_code=status_code, content=body)


def _raise_if_failed(outcome: ActionOutcome) -> dict[str, Any]:
    if isinstance(outcome, ActionFailed):
        status = 404 if "not found" in outcome.reason.lower() else 400
        raise HTTPException(status_code=status, detail=outcome.reason)
    return {"ok": True, "affected": outcome.affected}


def _parse_collection_filter(raw: str | None) -> tuple[bool, int | None]:
    if raw is None:
        return False, None
    if raw.strip().lower() == UNCATEGORIZED:
        return True, None
    try:
        return True, int(raw)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail="collection_id must be an integer or 'none'") from exc


def create_app(config: AppConfig | None = None, *, runtime: ServiceRuntime | None = None) -> FastAPI:
    cfg = config or (runtime.config if runtime else load_config())
    logger = setup_logger("service", cfg.debug, cfg.log_file)
    rt = runtime or build_runtime(cfg)

    app = FastAPI(title="reelvault", version="0.1.0")

    @app.get("/health")
    def health() -> dict[str, bool]:
        return {"ok": True}

    @app.post("/reels")
    async def save_reel(payload: SaveRequest) -> JSONResponse:
        raw_url = payload.url or extract_shared_url(payload.text or "") or (payload.text or "")
        outcome = await rt.pipeline.save(raw_url)
        logger.info("Save request outcome=%s", type(outcome).__name__)
        return _save_response(outcome)

    @app.get("/reels", response_model=list[ItemResponse])
    def list_reels(collection_id: str | None = None) -> list[dict[str, Any]]:
        filtered, target = _parse_collection_filter(collection_id)
        items = rt.actions.items_in_collection(target) if filtered else rt.store.list_items()
        return [_item_payload(item) for item in items]

    @app.get("/reels/{item_id}", response_model=ItemResponse)
    def get_reel(item_id: str) -> dict[str, Any]:
        item = rt.store.get_by_id(item_id)
        if not item:
            raise HTTPException(status_code=404, detail="Reel not found")
        return _item_payload(item)

    @app.patch("/reels/{item_id}", response_model=ItemResponse)
    def update_reel(item_id: str, payload: UpdateItemRequest) -> dict[str, Any]:
        outcome = rt.actions.update_item_details(
            item_id,
            title=payload.title,
            notes=payload.notes,
            tags=payload.tags,
            collection_id=payload.collection_id,
        )
        _raise_if_failed(outcome)
        item = rt.store.get_by_id(item_id)
        if not item:
            raise HTTPException(status_code=404, detail="Reel not found")
        return _item_payload(item)

    @app.post("/reels/delete")
    def delete_reels(payload: ItemIdsRequest) -> dict[str, Any]:
        return _raise_if_failed(rt.actions.delete_items(payload.ids))

    @app.post("/reels/move")
    def move_reels(payload: MoveItemsRequest) -> dict[str, Any]:
        return _raise_if_failed(rt.actions.move_items(payload.ids, payload.collection_id))

    @app.get("/collections", response_model=list[CollectionResponse])
    def list_collections() -> list[dict[str, Any]]:
        return [_collection_payload(collection) for collection in rt.store.list_collections()]

    @app.post("/collections", status_code=201, response_model=CollectionResponse)
    def create_collection(payload: CollectionRequest) -> dict[str, Any]:
        outcome = rt.actions.create_collection(payload.name, payload.color, payload.icon)
        if isinstance(outcome, CollectionLimitReached):
            raise HTTPException(
                status_code=403,
                detail=f"Collection limit reached: your plan allows {outcome.max_allowed} collections",
            )
        if not isinstance(outcome, CollectionCreated):
            raise HTTPException(status_code=400, detail=outcome.reason)
        return _collection_payload(outcome.collection)

    @app.put("/collections/{collection_id}", response_model=CollectionResponse)
    def update_collection(collection_id: int, payload: CollectionRequest) -> dict[str, Any]:
        _raise_if_failed(rt.actions.rename_collection(collection_id, payload.name, payload.color, payload.icon))
        collection = rt.store.get_collection(collection_id)
        if not collection:
            raise HTTPException(status_code=404, detail="Collection not found")
        return _collection_payload(collection)

    @app.delete("/collections/{collection_id}")
    def delete_collection(collection_id: int) -> dict[str, Any]:
        return _raise_if_failed(rt.actions.delete_collection(collection_id))

    @app.get("/tier")
    def tier() -> dict[str, Any]:
        return rt.policy.snapshot(
            saved_items=rt.store.count(),
            collections=rt.store.collection_count(),
        )

    return app
