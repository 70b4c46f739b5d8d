"""Bookmarks API wired with aodi.

Run with ``uvicorn app:app`` from this directory (``pip install aodi[examples]``).
"""

import asyncio
import os
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from fastapi import Depends, FastAPI, HTTPException
from pydantic import BaseModel, HttpUrl

from aodi import Injector, Token, dependencies, inject, provides, settings_from_env, singleton

API_TITLE: Token[str] = Token("api_title")
MAX_BOOKMARKS: Token[int] = Token("max_bookmarks")


@dataclass
class Bookmark:
    id: int
    url: str
    tags: List[str] = field(default_factory=list)


class BookmarkStore:
    """In-memory store guarded by an asyncio lock."""

    def __init__(self, capacity: int):
        self.capacity = capacity
        self._items: Dict[int, Bookmark] = {}
        self._next_id = 1
        self._lock = asyncio.Lock()

    async def add(self, url: str, tags: List[str]) -> Optional[Bookmark]:
        async with self._lock:
            if len(self._items) >= self.capacity:
                return None
            bookmark = Bookmark(self._next_id, url, tags)
            self._items[bookmark.id] = bookmark
            self._next_id += 1
            return bookmark

    def find(self, bookmark_id: int) -> Optional[Bookmark]:
        return self._items.get(bookmark_id)

    def tagged(self, tag: Optional[str]) -> List[Bookmark]:
        return [b for b in self._items.values() if tag is None or tag in b.tags]

    def remove(self, bookmark_id: int) -> bool:
        return self._items.pop(bookmark_id, None) is not None


@dataclass
class BookmarkService:
    store: BookmarkStore = inject(BookmarkStore)

    async def save(self, url: str, tags: List[str]) -> Bookmark:
        bookmark = await self.store.add(url, sorted(set(tags)))
        if bookmark is None:
            raise HTTPException(status_code=409, detail="Bookmark limit reached")
        return bookmark

    def get(self, bookmark_id: int) -> Bookmark:
        bookmark = self.store.find(bookmark_id)
        if bookmark is None:
            raise HTTPException(status_code=404, detail="Bookmark not found")
        return bookmark


class AppProviders:
    api_title = provides(API_TITLE)(os.environ.get("BOOKMARKS_TITLE", "Bookmarks"))

    @provides(MAX_BOOKMARKS)
    def max_bookmarks(self) -> int:
        return int(os.environ.get("BOOKMARKS_MAX", "1000"))

    @provides(BookmarkStore)
    @singleton
    @dependencies(MAX_BOOKMARKS)
    async def store(self, capacity: int) -> BookmarkStore:
        return BookmarkStore(capacity)


injector = Injector(settings_from_env()).provider(AppProviders()).provide(BookmarkService)


@asynccontextmanager
async def lifespan(app: FastAPI):
    app.title = await injector.get(API_TITLE)
    yield


app = FastAPI(lifespan=lifespan)


class BookmarkIn(BaseModel):
    url: HttpUrl
    tags: List[str] = []


class BookmarkOut(BaseModel):
    id: int
    url: str
    tags: List[str]


async def bookmark_service() -> BookmarkService:
    return await injector.get(BookmarkService)


@app.post("/bookmarks", response_model=BookmarkOut, status_code=201)
async def create_bookmark(data: BookmarkIn, service: BookmarkService = Depends(bookmark_service)):
    return BookmarkOut(**vars(await service.save(str(data.url), data.tags)))


@app.get("/bookmarks", response_model=List[BookmarkOut])
def list_bookmarks(tag: Optional[str] = None, service: BookmarkService = Depends(bookmark_service)):
    return [BookmarkOut(**vars(b)) for b in service.store.tagged(tag)]


@app.get("/bookmarks/{bookmark_id}", response_model=BookmarkOut)
def get_bookmark(bookmark_id: int, service: BookmarkService = Depends(bookmark_service)):
    return BookmarkOut(**vars(service.get(bookmark_id)))


@app.delete("/bookmarks/{bookmark_id}", status_code=204)
def delete_bookmark(bookmark_id: int, service: BookmarkService = Depends(bookmark_service)):
    if not service.store.remove(bookmark_id):
        raise HTTPException(status_code=404, detail="Bookmark not found")
