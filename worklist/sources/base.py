"""
Worklist source interface.
Every backend the worklist browser can read from implements WorklistSource.
"""
from abc import ABC, abstractmethod
from enum import Enum
from pathlib import Path
from typing import Callable, Iterable, List, Optional

from worklist.models import DataTable, FieldSelection

Observer = Callable[[bool], None]
TableReceiver = Callable[[DataTable, int], None]
FileReceiver = Callable[[Optional[Path]], None]
ProgressObserver = Callable[[int], None]


class SourceType(Enum):
    FILELIST = 'filelist'
    DIRECTORY = 'directory'
    FULL_WORKLIST = 'full_worklist'


class WorklistSource(ABC):
    """
    Abstract worklist backend.

    Operations return a task id and report their result through the supplied
    callbacks, possibly from another thread.
    """

    @abstractmethod
    def get_source_type(self) -> SourceType:
        raise NotImplementedError

    @abstractmethod
    def add_worklist_record(self, title: str, observer: Observer) -> int:
        raise NotImplementedError

    @abstractmethod
    def update_worklist_record(self, worklist_index: str, title: str, images: Iterable[str], observer: Observer) -> int:
        raise NotImplementedError

    @abstractmethod
    def delete_worklist_record(self, worklist_index: str, observer: Observer) -> int:
        raise NotImplementedError

    @abstractmethod
    def get_worklist_records(self, receiver: TableReceiver) -> int:
        raise NotImplementedError

    @abstractmethod
    def get_patient_records(self, worklist_index: str, receiver: TableReceiver) -> int:
        raise NotImplementedError

    @abstractmethod
    def get_study_records(self, patient_index: str, receiver: TableReceiver) -> int:
        raise NotImplementedError

    @abstractmethod
    def get_image_records(self, worklist_index: str, study_index: str, receiver: TableReceiver) -> int:
        raise NotImplementedError

    @abstractmethod
    def get_image_thumbnail_file(self, image_index: str, receiver: FileReceiver, observer: ProgressObserver) -> int:
        raise NotImplementedError

    @abstractmethod
    def get_image_file(self, image_index: str, receiver: FileReceiver, observer: ProgressObserver) -> int:
        raise NotImplementedError

    @abstractmethod
    def get_worklist_headers(self, selection: FieldSelection = FieldSelection.ALL) -> List[str]:
        raise NotImplementedError

    @abstractmethod
    def get_patient_headers(self, selection: FieldSelection = FieldSelection.ALL) -> List[str]:
        raise NotImplementedError

    @abstractmethod
    def get_study_headers(self, selection: FieldSelection = FieldSelection.ALL) -> List[str]:
        raise NotImplementedError

    @abstractmethod
    def get_image_headers(self, selection: FieldSelection = FieldSelection.ALL) -> List[str]:
        raise NotImplementedError

    @abstractmethod
    def cancel_task(self, task_id: int) -> None:
        raise NotImplementedError

    def close(self) -> None:
        """Release network resources. Optional for sources without any."""

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
