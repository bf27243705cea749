"""
Grand Challenge Source.
Worklist backend for the Grand Challenge REST API
(Worklist -> Patient -> Study -> Image).

The API publishes no schemas, so record layouts are learned at runtime:
patients and studies from a one record sample, worklists from the OPTIONS
metadata and images from a fixed column set. A schema that is still empty
when records arrive is refreshed in the background.
"""
import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence

import orjson
import requests

from worklist.models import DataTable, FieldSelection
from worklist.networking import (
    AuthenticationStatus,
    AuthenticationType,
    Credentials,
    DjangoConnection,
    http_file_download,
    transport_error_code,
)
from worklist.serialization import (
    SUCCESS,
    options_response_to_table_schema,
    response_to_filtered_table,
    response_to_table,
    serialize_value,
)
from .base import FileReceiver, Observer, ProgressObserver, SourceType, TableReceiver, WorklistSource

logger = logging.getLogger('worklist.source')

IMAGE_SCHEMA = ('id', 'title')
IMAGE_FIELDS = ('pk', 'name')
VISIBLE_FIELD = 'name'


class TableEntry(Enum):
    WORKLIST = 'worklist'
    PATIENT = 'patient'
    STUDY = 'study'
    IMAGE = 'image'


@dataclass
class GrandChallengeURLInfo:
    """
    Location of the API and its resource paths.

    Every path can be overridden to target another deployment of the same API.
    """
    base_url: str
    worklist_path: str = 'api/v1/worklists/'
    patient_path: str = 'api/v1/patients/'
    study_path: str = 'api/v1/studies/'
    image_path: str = 'api/v1/cases/images/'

    @classmethod
    def standard(cls, base_url: str) -> 'GrandChallengeURLInfo':
        """Stock resource paths of a Grand Challenge instance."""
        return cls(base_url=base_url)


def _record_path(collection_path: str, index: str) -> str:
    return f"{collection_path.rstrip('/')}/{index}/"


class GrandChallengeSource(WorklistSource):
    """
    Grand Challenge worklist backend.

    Usage:
        source = GrandChallengeSource(
            GrandChallengeURLInfo.standard('https://grand-challenge.org/'),
            temp_dir=Path('/tmp/worklist'),
            credentials=DjangoConnection.create_credentials(token='abc123')
        )
        source.get_worklist_records(lambda table, error_code: print(table))
    """

    def __init__(
        self,
        url_info: GrandChallengeURLInfo,
        temp_dir: Path,
        credentials: Credentials,
        session: Optional[requests.Session] = None,
        max_workers: int = 4,
        timeout: Optional[float] = None,
        probe_path: str = 'api/v1/'
    ):
        """
        Initialize source, verify the credentials and load the schemas.

        Args:
            url_info: API location and resource paths
            temp_dir: Directory downloaded images are written to
            credentials: Token credentials
            session: Optional requests session
            max_workers: Number of concurrent requests
            timeout: Optional per request timeout in seconds
            probe_path: Path used to verify the token
        """
        self.url_info = url_info
        self.temp_dir = Path(temp_dir)

        self._connection = DjangoConnection(
            url_info.base_url,
            AuthenticationType.TOKEN,
            credentials,
            session=session,
            max_workers=max_workers,
            timeout=timeout,
            probe_path=probe_path
        )

        self._schemas: Dict[TableEntry, DataTable] = {entry: DataTable() for entry in TableEntry}
        self._schema_lock: threading.Lock = threading.Lock()
        self._refresh_lock: threading.Lock = threading.Lock()
        self._refresh_executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix='SchemaRefresh')
        self._pending_refresh: Optional[Future] = None
        self._closed = False

        self.refresh_tables()

    def get_source_type(self) -> SourceType:
        return SourceType.FULL_WORKLIST

    # ==================== Authentication ====================

    def get_authentication_status(self) -> AuthenticationStatus:
        return self._connection.get_authentication_status()

    def set_credentials(self, credentials: Credentials) -> AuthenticationStatus:
        """Swap credentials; outstanding tasks are cancelled."""
        return self._connection.set_credentials(credentials)

    # ==================== Worklists ====================

    def add_worklist_record(self, title: str, observer: Observer) -> int:
        """
        Create a worklist.

        Endpoint: POST <worklist_path>
        Success: 201 Created
        """
        request = requests.Request(
            'POST',
            self.url_info.worklist_path,
            json={'title': title, 'images': []}
        )
        return self._connection.queue_request(request, self._status_observer(201, observer))

    def update_worklist_record(self, worklist_index: str, title: str, images: Iterable[str], observer: Observer) -> int:
        """
        Update a worklist's title and image set.

        Endpoint: PATCH <worklist_path><worklist_index>/
        Success: 200 OK
        """
        request = requests.Request(
            'PATCH',
            _record_path(self.url_info.worklist_path, worklist_index),
            json={'title': title, 'images': sorted(set(images))}
        )
        return self._connection.queue_request(request, self._status_observer(200, observer))

    def delete_worklist_record(self, worklist_index: str, observer: Observer) -> int:
        """
        Delete a worklist.

        Endpoint: DELETE <worklist_path><worklist_index>/
        Success: 204 No Content
        """
        request = requests.Request('DELETE', _record_path(self.url_info.worklist_path, worklist_index))
        return self._connection.queue_request(request, self._status_observer(204, observer))

    def get_worklist_records(self, receiver: TableReceiver) -> int:
        request = requests.Request('GET', self.url_info.worklist_path)
        return self._queue_table_request(TableEntry.WORKLIST, request, receiver)

    # ==================== Patients / Studies / Images ====================

    def get_patient_records(self, worklist_index: str, receiver: TableReceiver) -> int:
        params = {'worklist': worklist_index} if worklist_index else None
        request = requests.Request('GET', self.url_info.patient_path, params=params)
        return self._queue_table_request(TableEntry.PATIENT, request, receiver)

    def get_study_records(self, patient_index: str, receiver: TableReceiver) -> int:
        request = requests.Request('GET', self.url_info.study_path, params={'patient': patient_index})
        return self._queue_table_request(TableEntry.STUDY, request, receiver)

    def get_image_records(self, worklist_index: str, study_index: str, receiver: TableReceiver) -> int:
        params = {}
        if study_index:
            params['study'] = study_index
        if worklist_index:
            params['worklist'] = worklist_index

        request = requests.Request('GET', self.url_info.image_path, params=params or None)
        return self._queue_table_request(TableEntry.IMAGE, request, receiver, fields=IMAGE_FIELDS)

    # ==================== Files ====================

    def get_image_thumbnail_file(self, image_index: str, receiver: FileReceiver, observer: ProgressObserver) -> int:
        # The API offers no thumbnails yet; report an empty result straight away.
        receiver(None)
        observer(100)
        return 0

    def get_image_file(self, image_index: str, receiver: FileReceiver, observer: ProgressObserver) -> int:
        """
        Download an image into the temporary directory.

        The image record names the file and links to its content; the content
        is then streamed to disk. The receiver gets the local path, or None if
        any step fails.
        """
        request = requests.Request('GET', _record_path(self.url_info.image_path, image_index))

        def on_metadata(response: Optional[requests.Response], error: Optional[requests.RequestException]):
            try:
                if error is not None:
                    raise error
                response.raise_for_status()

                json_data = orjson.loads(response.content)
                file_name = serialize_value(json_data['name'])
                file_url = serialize_value(json_data['files'][0]['file'])

                file_response = self._connection.send_blocking(requests.Request('GET', file_url), stream=True)
                try:
                    path = http_file_download(file_response, self.temp_dir, file_name, observer)
                finally:
                    file_response.close()

            except (requests.exceptions.RequestException, orjson.JSONDecodeError,
                    KeyError, IndexError, TypeError, ValueError, OSError) as e:
                if self._connection.current_task_cancelled():
                    return
                logger.error(f"Failed to download image {image_index}: {e}")
                receiver(None)
                return

            if not self._connection.current_task_cancelled():
                receiver(path)

        return self._connection.queue_request(request, on_metadata)

    # ==================== Schemas ====================

    def get_worklist_headers(self, selection: FieldSelection = FieldSelection.ALL) -> List[str]:
        return self._get_schema(TableEntry.WORKLIST).get_column_names(selection)

    def get_patient_headers(self, selection: FieldSelection = FieldSelection.ALL) -> List[str]:
        return self._get_schema(TableEntry.PATIENT).get_column_names(selection)

    def get_study_headers(self, selection: FieldSelection = FieldSelection.ALL) -> List[str]:
        return self._get_schema(TableEntry.STUDY).get_column_names(selection)

    def get_image_headers(self, selection: FieldSelection = FieldSelection.ALL) -> List[str]:
        return self._get_schema(TableEntry.IMAGE).get_column_names(selection)

    def refresh_tables(self) -> None:
        """
        Rediscover the record schemas. Blocks until the patient, study and
        worklist lookups have all finished.

        A lookup that fails keeps the previous schema.
        """
        with self._refresh_lock:
            lookups = {
                TableEntry.PATIENT: requests.Request('GET', self.url_info.patient_path, params={'limit': 1}),
                TableEntry.STUDY: requests.Request('GET', self.url_info.study_path, params={'limit': 1}),
                TableEntry.WORKLIST: requests.Request('OPTIONS', self.url_info.worklist_path),
            }
            futures = {entry: self._connection.send_request(request) for entry, request in lookups.items()}

            discovered = {TableEntry.IMAGE: DataTable(IMAGE_SCHEMA)}
            for entry, future in futures.items():
                try:
                    response = future.result()
                except requests.exceptions.RequestException as e:
                    logger.warning(f"Could not load {entry.value} schema: {e}")
                    continue

                schema = DataTable()
                if entry == TableEntry.WORKLIST:
                    error_code = options_response_to_table_schema(response, schema)
                else:
                    error_code = response_to_table(self._connection, response, schema, follow_next=False)
                    schema.clear()
                    for name in schema.get_column_names():
                        if name != VISIBLE_FIELD:
                            schema.set_column_as_invisible(name)

                if error_code == SUCCESS and schema.get_column_count() > 0:
                    discovered[entry] = schema
                else:
                    logger.warning(f"No {entry.value} schema available (error code {error_code})")

            with self._schema_lock:
                self._schemas.update(discovered)
                summary = ", ".join(
                    f"{entry.value}={schema.get_column_count()}" for entry, schema in self._schemas.items()
                )

            logger.info(f"Schemas refreshed (columns: {summary})")

    def _get_schema(self, entry: TableEntry) -> DataTable:
        with self._schema_lock:
            return self._schemas[entry].copy()

    def _schedule_refresh(self) -> None:
        with self._schema_lock:
            if self._closed:
                return
            if self._pending_refresh is not None and not self._pending_refresh.done():
                return
            logger.info("Records arrived for an unknown schema, refreshing schemas")
            self._pending_refresh = self._refresh_executor.submit(self.refresh_tables)

    # ==================== Tasks ====================

    def cancel_task(self, task_id: int) -> None:
        self._connection.cancel_task(task_id)

    def close(self) -> None:
        self._connection.cancel_all_tasks()
        with self._schema_lock:
            self._closed = True
        self._refresh_executor.shutdown(wait=True)
        self._connection.close()

    def _status_observer(self, expected_status: int, observer: Observer):
        def on_response(response: Optional[requests.Response], error: Optional[requests.RequestException]):
            if error is not None:
                logger.error(f"Request failed: {error}")
                observer(False)
                return
            observer(response.status_code == expected_status)
        return on_response

    def _queue_table_request(
        self,
        entry: TableEntry,
        request: requests.Request,
        receiver: TableReceiver,
        fields: Optional[Sequence[str]] = None
    ) -> int:
        schema = self._get_schema(entry)

        def on_response(response: Optional[requests.Response], error: Optional[requests.RequestException]):
            table = schema.copy()

            if error is not None:
                error_code = transport_error_code(error)
            elif fields:
                error_code = response_to_filtered_table(self._connection, response, table, fields)
            else:
                error_code = response_to_table(self._connection, response, table)

            if self._connection.current_task_cancelled():
                logger.debug(f"Dropping {entry.value} records of a cancelled read")
                return

            if table.size() > 0 and schema.get_column_count() == 0:
                self._schedule_refresh()

            receiver(table, error_code)

        return self._connection.queue_request(request, on_response)
