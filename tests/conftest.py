from typing import Dict, Iterable, Optional

import pytest

from folio.search.builder import IndexSnapshot, build_snapshot
from folio.sources.base import RawCollection, RawDocument

# ---------- Helpers ----------


def make_doc(
    title: str,
    url: str,
    text: str = "",
    *,
    preview: Optional[str] = None,
    headings: Iterable[str] = (),
    tags: str = "",
) -> RawDocument:
    return RawDocument(
        title=title,
        url=url,
        preview=preview if preview is not None else text[:40],
        text=text,
        headings=tuple(headings),
        tags=tags,
    )


def make_collection(
    identifier: str, *docs: RawDocument, aliases: Iterable[str] = ()
) -> RawCollection:
    return RawCollection(identifier=identifier, documents=tuple(docs), aliases=tuple(aliases))


def alpha_beta_sources() -> Dict[str, RawCollection]:
    alpha = make_collection(
        "alpha",
        make_doc("Connecting to a cluster", "https://docs.example/alpha/connect/", "How to connect a driver."),
        make_doc("Connection pools", "https://docs.example/alpha/pools/", "Pools reuse each connection."),
        aliases=["alpha-docs"],
    )
    beta = make_collection(
        "beta",
        make_doc("Connect", "https://docs.example/beta/connect/", "Connect before running an aggregation."),
        make_doc(
            "Aggregation pipeline",
            "https://docs.example/beta/aggregation/",
            "The aggregation pipeline processes documents in stages.",
            headings=["Stages", "$match operator"],
        ),
        make_doc("Indexes", "https://docs.example/beta/indexes/", "Indexes speed up queries."),
        aliases=["beta-manual", "manual"],
    )
    return {"alpha": alpha, "beta": beta}


@pytest.fixture
def alpha_beta() -> IndexSnapshot:
    return build_snapshot(alpha_beta_sources())
