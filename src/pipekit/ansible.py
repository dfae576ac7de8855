"""Ansible playbook and galaxy collection runs.

Playbook and inventory text come from the pipeline (usually rendered with
pipekit.templating) and are written next to a checkout of the ansible
project before ansible-playbook runs.

Layout inside the work directory:
    ansible/execute.yml, ansible/inventory.ini          (collection mode)
    ansible/roles/execute.yml, ansible/roles/inventory.ini  (roles mode)
"""

from __future__ import annotations

import logging
import shutil
from collections.abc import Sequence
from pathlib import Path

from pipekit.errors import CommandError, readable_error
from pipekit.shell import CommandRunner, run_command

logger = logging.getLogger(__name__)

ANSIBLE_DIR = "ansible"
PLAYBOOK_NAME = "execute.yml"
INVENTORY_NAME = "inventory.ini"


def install_ansible_galaxy_collections(
    git_url: str,
    git_branch: str,
    collections: Sequence[str],
    *,
    workdir: str | Path = ".",
    cleanup: bool = True,
    runner: CommandRunner = run_command,
) -> bool:
    """Clone an ansible project, then build and install its collections.

    Collections live in the project under ansible_collections/<namespace>/<name>,
    following the ansible-galaxy layout.

    Args:
        git_url: Git URL of the ansible project; empty when it is already
            checked out in <workdir>/ansible.
        git_branch: Branch to clone.
        collections: Collection names like 'namespace.name'.
        workdir: Directory holding the ansible checkout.
        cleanup: Remove the previous checkout before cloning.
        runner: Local command runner.

    Returns:
        True if every collection was built and installed.
    """
    ansible_dir = Path(workdir) / ANSIBLE_DIR

    if git_url.strip():
        if cleanup and ansible_dir.exists():
            shutil.rmtree(ansible_dir)
        clone = runner(["git", "clone", "--branch", git_branch, git_url, str(ansible_dir)])
        if not clone.ok:
            logger.error(f"Unable to clone {git_url} ({git_branch}): {clone.stderr.strip()}")
            return False

    installed = True
    for collection in collections:
        collection_dir = ansible_dir / "ansible_collections" / collection.replace(".", "/")
        if not _build_and_install(collection, collection_dir, runner):
            logger.error(f"There was an error building and installing {collection} ansible collection.")
            installed = False
    return installed


def _build_and_install(collection: str, collection_dir: Path, runner: CommandRunner) -> bool:
    build = runner(["ansible-galaxy", "collection", "build", "--force"], cwd=str(collection_dir))
    if not build.ok:
        return False

    tarballs = sorted(collection_dir.glob(f"{collection.replace('.', '-')}*.tar.gz"))
    if not tarballs:
        return False

    install = runner(
        ["ansible-galaxy", "collection", "install", str(tarballs[-1]), "-f"],
        cwd=str(collection_dir),
    )
    return install.ok


def run_ansible(
    playbook_text: str,
    inventory_text: str,
    git_url: str = "",
    git_branch: str = "main",
    *,
    extras: Sequence[str] = (),
    collections: Sequence[str] = (),
    workdir: str | Path = ".",
    cleanup: bool = True,
    runner: CommandRunner = run_command,
) -> bool:
    """Run a playbook, installing collections from the ansible project first.

    Without collections the playbook runs the old way, from the roles/
    directory of the checkout. Inventory files are removed afterwards
    whatever the outcome, since they usually carry credentials.

    Returns:
        True if ansible-playbook succeeded.
    """
    ansible_dir = Path(workdir) / ANSIBLE_DIR
    if collections:
        if git_url.strip() and not install_ansible_galaxy_collections(
            git_url,
            git_branch,
            collections,
            workdir=workdir,
            cleanup=cleanup,
            runner=runner,
        ):
            return False
        mode = f"ansible collection(s) {list(collections)}"
        run_dir = ansible_dir
    else:
        mode = "ansible"
        run_dir = ansible_dir / "roles"

    try:
        run_dir.mkdir(parents=True, exist_ok=True)
        (run_dir / INVENTORY_NAME).write_text(inventory_text, encoding="utf-8")
        (run_dir / PLAYBOOK_NAME).write_text(playbook_text, encoding="utf-8")
        logger.info(f"Running {mode} from:\n{playbook_text}\n{'-' * 32}")

        runner(
            ["ansible-playbook", "-i", INVENTORY_NAME, PLAYBOOK_NAME, *extras],
            check=True,
            cwd=str(run_dir),
        )
    except (OSError, CommandError) as e:
        logger.error(f"Running ansible failed: {readable_error(e)}")
        return False
    finally:
        for inventory in (ansible_dir / INVENTORY_NAME, ansible_dir / "roles" / INVENTORY_NAME):
            inventory.unlink(missing_ok=True)
    return True
