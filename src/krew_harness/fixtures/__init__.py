from krew_harness.fixtures.fetch import fetch_index_snapshot
from krew_harness.fixtures.index import IndexFixture, IndexSnapshot

__all__ = ["IndexFixture", "IndexSnapshot", "fetch_index_snapshot"]
