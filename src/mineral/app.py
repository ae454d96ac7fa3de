"""
Kiosk composition: wires the actors together from one configuration value

Menu Poller → catalog channel → Event Consumer → Presenter
Presenter click → Order Workflow → ordering channel → Event Consumer
FINISHED(refresh) → refresh channel → Menu Poller
"""

import logging
import queue
from typing import Optional

from .core.event_consumer import EventConsumer, Presenter
from .core.menu_poller import MenuPoller
from .core.order_state import OrderIntent
from .core.order_workflow import OrderWorkflow
from .core.scan_authenticator import ScanAuthenticator
from .utils.config import DEFAULT_CONFIG_PATH, KioskConfig, load_config
from .utils.drink_client import DrinkClient
from .utils.logger import configure_logging
from .utils.member_client import MemberClient


class KioskApp:
    """Owns the channels, the shared clients and the long-lived actors"""

    def __init__(self, config: KioskConfig, presenter: Presenter,
                 client: Optional[DrinkClient] = None,
                 authenticator: Optional[ScanAuthenticator] = None):
        self.logger = logging.getLogger(__name__)
        self.config = config

        self.catalog_channel = queue.Queue()
        self.ordering_channel = queue.Queue()
        self.refresh_channel = queue.Queue()

        self.client = client or DrinkClient.from_config(config)
        if authenticator is None:
            members = MemberClient.from_config(config, session=self.client.session)
            authenticator = ScanAuthenticator.from_config(config, members)
        self.authenticator = authenticator

        self.poller = MenuPoller(self.client, self.catalog_channel, self.refresh_channel,
                                 interval=config.poll_interval)
        self.consumer = EventConsumer(config, presenter,
                                      self.catalog_channel, self.ordering_channel,
                                      self.refresh_channel, self.new_workflow)

    def new_workflow(self, order_id: int, intent: OrderIntent) -> OrderWorkflow:
        return OrderWorkflow.from_config(self.config, order_id, intent, self.client,
                                         self.authenticator, self.ordering_channel)

    def start(self):
        self.logger.info("Starting kiosk for machines %s", self.config.displayable_machines)
        self.poller.start()

    def stop(self):
        self.poller.stop()
        self.client.close()
        self.logger.info("Kiosk stopped")


def create_app(presenter: Presenter, config_path: Optional[str] = DEFAULT_CONFIG_PATH) -> KioskApp:
    """
    Load configuration, set up logging and build the kiosk

    Args:
        presenter: Display collaborator
        config_path: YAML configuration path

    Returns:
        Unstarted KioskApp
    """
    config = load_config(config_path)
    configure_logging(config)
    return KioskApp(config, presenter)
