"""Imports task lists (folders) and tasks (JSON documents inside them)"""

import logging
from typing import List, Tuple

from oauth.providers import TASKS
from ..idempotent_executor import IdempotentImportExecutor
from ..models import TaskContainerResource, TaskListModel, TaskModel
from ..pipeline import ChildTask, ParentTask
from ..storage_client import StorageClient
from .base import Importer, first_line, item_key, parent_key, stable_digest

logger = logging.getLogger(__name__)

TASKS_FOLDER = "tasks"


class TasksImporter(Importer):
    resource_kind = TASKS

    def plan(
        self,
        job_id: str,
        client: StorageClient,
        executor: IdempotentImportExecutor,
        resource: TaskContainerResource,
    ) -> Tuple[List[ParentTask], List[ChildTask]]:
        parents = [
            ParentTask(
                parent_key("list", task_list.id),
                task_list.name,
                lambda task_list=task_list: self._import_list(task_list, client),
            )
            for task_list in resource.lists
        ]
        children = []
        for task in resource.tasks:
            task_id = task.id or stable_digest(task)
            children.append(
                ChildTask(
                    item_key("task", task.task_list_id, task_id),
                    first_line(task.text) or task_id,
                    parent_key("list", task.task_list_id),
                    lambda list_path, task=task, task_id=task_id: self._import_task(task, task_id, list_path, client),
                )
            )
        return parents, children

    def _import_list(self, task_list: TaskListModel, client: StorageClient) -> str:
        logger.debug(f"Create task list {task_list.name}")
        return client.ensure_folder(client.ensure_top_level_folder(TASKS_FOLDER), task_list.name)

    def _import_task(self, task: TaskModel, task_id: str, list_path: str, client: StorageClient) -> str:
        title = f"{first_line(task.text) or 'untitled task'}--{task_id}"
        full_path = client.json_path(list_path, title)
        if client.file_exists(full_path):
            logger.debug(f"Task already exists {full_path}")
            return full_path
        return client.upload_json(list_path, title, task.model_dump_json())
