"""
Core Logic Module
Catalog Model, Order State, Scan Authenticator, Menu Poller, Order Workflow and Event Consumer
"""

from .catalog import CatalogSnapshot, Item, Machine, MachineView, Slot, build_machine_views
from .order_state import CancelHandle, OrderIntent, OrderState, OrderStateKind
from .scan_authenticator import AuthenticationError, Identity, ScanAuthenticator
from .menu_poller import MenuPoller
from .order_workflow import OrderWorkflow
from .event_consumer import EventConsumer, Presenter

__all__ = ['CatalogSnapshot', 'Item', 'Machine', 'MachineView', 'Slot', 'build_machine_views',
           'CancelHandle', 'OrderIntent', 'OrderState', 'OrderStateKind',
           'AuthenticationError', 'Identity', 'ScanAuthenticator',
           'MenuPoller', 'OrderWorkflow', 'EventConsumer', 'Presenter']
