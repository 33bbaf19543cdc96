"""Ports (interfaces) for infrastructure adapters."""

from abc import ABC, abstractmethod

from wq_extract.domain.entities import DeploymentDataset


class CatalogFetchPort(ABC):
    """Port for fetching catalog documents."""

    @abstractmethod
    async def fetch_document(self, url: str) -> str:
        """Fetch the raw catalog text at url.

        Raises:
            RetrievalError: the document is unreachable, the response is not
                successful, or the request timed out.
        """


class DatasetReaderPort(ABC):
    """Port for opening deployment datasets."""

    @abstractmethod
    async def open_dataset(self, url: str) -> DeploymentDataset:
        """Open the dataset at url and read its arrays and global attributes.

        The underlying handle is released before returning, on success and on
        every error path.

        Raises:
            RetrievalError: the dataset cannot be opened or decoded.
        """
