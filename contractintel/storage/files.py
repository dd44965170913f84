from __future__ import annotations
import os
import shutil
from pathlib import Path
from typing import BinaryIO, Union
from contractintel.utils.exception import NotFoundError
from contractintel.utils.logger import logger


class LocalFileStorage:
    """Stores uploaded documents under `<root>/<contract_id>/<file_name>`.

    Callers only ever see paths relative to the root; those are what the
    documents table stores.
    """

    def __init__(self, root: Union[str, Path]):
        self.root = Path(root)
        if not self.root.exists():
            os.makedirs(self.root, exist_ok=True)
            logger.info("Created storage root directory: %s", self.root)

    def get_full_path(self, relative_path: str) -> Path:
        full = (self.root / relative_path).resolve()
        root = self.root.resolve()
        if full != root and root not in full.parents:
            raise ValueError(f"Path escapes storage root: {relative_path}")
        return full

    def save_file(self, contract_id: str, file_name: str, stream: BinaryIO) -> str:
        relative = Path(contract_id) / Path(file_name).name
        full = self.get_full_path(str(relative))
        full.parent.mkdir(parents=True, exist_ok=True)
        with open(full, "wb") as out:
            shutil.copyfileobj(stream, out)
        logger.info("Saved file: %s", relative.as_posix())
        return relative.as_posix()

    def file_exists(self, relative_path: str) -> bool:
        try:
            return self.get_full_path(relative_path).is_file()
        except ValueError:
            return False

    def open_file(self, relative_path: str) -> BinaryIO:
        full = self.get_full_path(relative_path)
        if not full.is_file():
            raise NotFoundError(f"File not found: {relative_path}")
        return open(full, "rb")

    def delete_file(self, relative_path: str) -> None:
        full = self.get_full_path(relative_path)
        if full.is_file():
            full.unlink()
            logger.info("Deleted file: %s", relative_path)
