"""
Dependencies for the file routes.

Stores live on ``app.state`` (built in the lifespan) so tests and
alternate deployments can swap backends without touching the routes.
"""
from typing import Annotated

from fastapi import Depends, Request

from fileshare.config import Settings
from fileshare.services.acceptance import AcceptancePolicy
from fileshare.services.blob_store import BlobStore
from fileshare.services.metadata_store import MetadataStore


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_blob_store(request: Request) -> BlobStore:
    return request.app.state.blob_store


def get_metadata_store(request: Request) -> MetadataStore:
    return request.app.state.metadata_store


def get_acceptance_policy(request: Request) -> AcceptancePolicy:
    return request.app.state.acceptance_policy


# Type aliases for dependency injection
AppSettings = Annotated[Settings, Depends(get_settings)]
Blobs = Annotated[BlobStore, Depends(get_blob_store)]
Metadata = Annotated[MetadataStore, Depends(get_metadata_store)]
Policy = Annotated[AcceptancePolicy, Depends(get_acceptance_policy)]
