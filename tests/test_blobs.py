"""Mini README: Tests for the in-memory blob storage collaborator."""

from __future__ import annotations

import pytest

from fleetledger.blobs import InMemoryBlobStorage
from fleetledger.errors import NotFoundError


@pytest.mark.anyio
async def test_upload_url_lookup_and_delete(blobs: InMemoryBlobStorage) -> None:
    url = await blobs.upload("statements/abc/bank.pdf", b"%PDF")

    assert await blobs.get_download_url("statements/abc/bank.pdf") == url
    assert await blobs.get_download_url(url) == url

    await blobs.delete(url)
    with pytest.raises(NotFoundError):
        await blobs.get_download_url("statements/abc/bank.pdf")
    with pytest.raises(NotFoundError):
        await blobs.delete("statements/abc/bank.pdf")
