"""
Dependency Injection Container

Wires settings into the worklist services using dependency-injector.

Design:
- The worklist source is selected by name at construction time
- Sources are singletons (one connection per container)
- Lazy initialization (created on first use)
"""
from dependency_injector import containers, providers

from worklist import settings
from worklist.networking import DjangoConnection


class Container(containers.DeclarativeContainer):
    """
    Main DI Container.

    Usage:
        container = setup_container()
        source = container.worklist_source()
    """

    config = providers.Configuration()

    # ============================================================================
    # Connection settings
    # ============================================================================

    url_info = providers.Factory(
        'worklist.sources.GrandChallengeURLInfo',
        base_url=config.base_url,
        worklist_path=config.worklist_path,
        patient_path=config.patient_path,
        study_path=config.study_path,
        image_path=config.image_path
    )

    credentials = providers.Factory(
        DjangoConnection.create_credentials,
        token=config.token
    )

    # ============================================================================
    # Worklist sources (sources/)
    # ============================================================================

    grand_challenge_source = providers.Singleton(
        'worklist.sources.GrandChallengeSource',
        url_info=url_info,
        temp_dir=config.temp_dir,
        credentials=credentials,
        max_workers=config.max_workers,
        timeout=config.request_timeout,
        probe_path=config.probe_path
    )

    worklist_source = providers.Selector(
        config.source,
        grand_challenge=grand_challenge_source
    )


def setup_container() -> Container:
    """
    Setup and configure the DI container from the settings module.

    Returns:
        Configured Container instance with all settings loaded
    """
    container = Container()

    container.config.source.from_value(settings.WORKLIST_SOURCE)
    container.config.base_url.from_value(settings.WORKLIST_BASE_URL)
    container.config.token.from_value(settings.WORKLIST_TOKEN)
    container.config.probe_path.from_value(settings.WORKLIST_PROBE_PATH)

    container.config.worklist_path.from_value(settings.WORKLIST_WORKLIST_PATH)
    container.config.patient_path.from_value(settings.WORKLIST_PATIENT_PATH)
    container.config.study_path.from_value(settings.WORKLIST_STUDY_PATH)
    container.config.image_path.from_value(settings.WORKLIST_IMAGE_PATH)

    container.config.max_workers.from_value(settings.WORKLIST_MAX_WORKERS)
    container.config.request_timeout.from_value(settings.WORKLIST_REQUEST_TIMEOUT)
    container.config.temp_dir.from_value(settings.WORKLIST_TEMP_DIR)

    return container
