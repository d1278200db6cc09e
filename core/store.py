"""Persistence for finished sites."""

import json
import logging
import os
import time
import uuid

from config.defaults import PROJECT_ID_PLACEHOLDER
from core.state import is_internal
from utils.folder_naming import check_containment, get_output_dir, get_output_root

logger = logging.getLogger(__name__)

METADATA_FILE = "project.json"


class ProjectStore:
    """Persistence sink for a finished artifact map.

    save() returns (project_id, artifacts); the returned map is authoritative
    because the store may rewrite placeholder tokens.
    """

    def save(self, artifacts, metadata):
        raise NotImplementedError


class DirectoryStore(ProjectStore):
    """Writes each project to <root>/<name>_<id>/ with a project.json beside the pages."""

    def __init__(self, root=None):
        self.root = root or get_output_root()

    def save(self, artifacts, metadata):
        project_id = uuid.uuid4().hex[:8]
        output_dir = get_output_dir(metadata.get("project_name", "site"), project_id, root=self.root)
        os.makedirs(output_dir, exist_ok=True)

        files = {}
        for path, content in artifacts.items():
            if is_internal(path):
                continue
            files[path] = content.replace(PROJECT_ID_PLACEHOLDER, project_id)
            full_path = check_containment(os.path.join(output_dir, path), output_dir)
            os.makedirs(os.path.dirname(full_path), exist_ok=True)
            with open(full_path, "w", encoding="utf-8") as fp:
                fp.write(files[path])

        record = dict(metadata, project_id=project_id, created=time.time(), files=sorted(files))
        with open(os.path.join(output_dir, METADATA_FILE), "w", encoding="utf-8") as fp:
            json.dump(record, fp, indent=2)

        logger.info("Saved %d file(s) to %s", len(files), output_dir)
        return project_id, files

    def history(self, limit=50):
        """Saved project records, newest first."""
        if not os.path.isdir(self.root):
            return []
        records = []
        for entry in os.listdir(self.root):
            meta_path = os.path.join(self.root, entry, METADATA_FILE)
            if not os.path.isfile(meta_path):
                continue
            try:
                with open(meta_path, encoding="utf-8") as fp:
                    records.append(json.load(fp))
            except (OSError, json.JSONDecodeError) as e:
                logger.warning("Skipping unreadable project record %s: %s", meta_path, e)
        records.sort(key=lambda r: r.get("created", 0), reverse=True)
        return records[:limit]
