"""Imports orders, one request per order"""

import logging
from typing import List, Tuple

from oauth.providers import ORDER
from ..idempotent_executor import IdempotentImportExecutor
from ..models import OrderContainerResource, OrderModel
from ..pipeline import ChildTask, ParentTask
from ..storage_client import StorageClient
from .base import Importer, item_key

logger = logging.getLogger(__name__)

IMPORT_ORDER_PATH = "/order/importOrder"


class OrdersImporter(Importer):
    resource_kind = ORDER

    def plan(
        self,
        job_id: str,
        client: StorageClient,
        executor: IdempotentImportExecutor,
        resource: OrderContainerResource,
    ) -> Tuple[List[ParentTask], List[ChildTask]]:
        children = [
            ChildTask(
                item_key("order", None, order.serial),
                order.item or order.serial,
                None,
                lambda _parent, order=order: self._import_single_order(order, client),
            )
            for order in resource.orders
        ]
        return [], children

    def _import_single_order(self, order: OrderModel, client: StorageClient) -> str:
        logger.debug(f"Import single order {order.item}")
        client.http.send("GET", IMPORT_ORDER_PATH, params={"jsonStr": order.model_dump_json()})
        return order.serial
