"""
Singleton BlockRegistry with auto-discovery.

Blocks are declared in ``blocks/*_blocks.py`` modules as a module-level
``BLOCKS`` list.  Discovery runs once at startup; afterwards the registry
is frozen and only serves lookups.
"""

from __future__ import annotations

import importlib
import logging
import pathlib
from typing import Dict, List, Optional

from blocks.models import Block, Operation
from utils.errors import BlockNotFoundError, OperationNotFoundError

logger = logging.getLogger(__name__)

_BLOCKS_DIR = pathlib.Path(__file__).resolve().parent


class BlockRegistry:
    """Process-wide singleton that maps block-id → Block."""

    _instance: "BlockRegistry | None" = None

    def __new__(cls) -> "BlockRegistry":
        if cls._instance is None:
            inst = super().__new__(cls)
            inst._blocks: Dict[str, Block] = {}
            inst._frozen = False
            cls._instance = inst
        return cls._instance

    def register(self, block: Block) -> None:
        if self._frozen:
            raise RuntimeError(
                f"Cannot register block '{block.block_id}': registry is frozen"
            )
        if block.block_id in self._blocks:
            raise ValueError(f"Duplicate block id '{block.block_id}'")
        self._blocks[block.block_id] = block

    def freeze(self) -> None:
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    def get_block(self, block_id: str) -> Block:
        """
        Raises
        ------
        BlockNotFoundError – unknown block id
        """
        block = self._blocks.get(block_id)
        if block is None:
            raise BlockNotFoundError(block_id)
        return block

    def get_operation(self, block_id: str, operation: str) -> Operation:
        """
        Raises
        ------
        BlockNotFoundError     – unknown block id
        OperationNotFoundError – block exists but has no such operation
        """
        block = self.get_block(block_id)
        op = block.operations.get(operation)
        if op is None:
            raise OperationNotFoundError(block_id, operation)
        return op

    def has_block(self, block_id: str) -> bool:
        return block_id in self._blocks

    def list_blocks(self) -> List[Dict[str, object]]:
        return [
            {
                "blockId": block.block_id,
                "operations": {name: op.kind for name, op in block.operations.items()},
            }
            for block in self._blocks.values()
        ]

    # ── auto-discovery ──────────────────────────────────────────────────

    def auto_discover_blocks(self, blocks_dir: Optional[pathlib.Path] = None) -> None:
        """
        Import every ``*_blocks.py`` module and register its ``BLOCKS``,
        then freeze the registry.  A second call is a no-op.
        """
        if self._frozen:
            return

        blocks_path = pathlib.Path(blocks_dir or _BLOCKS_DIR).resolve()
        block_files = sorted(blocks_path.glob("*_blocks.py"))

        if not block_files:
            raise RuntimeError(f"No *_blocks.py files found in {blocks_path}")

        for block_file in block_files:
            module_name = f"{blocks_path.name}.{block_file.stem}"
            try:
                module = importlib.import_module(module_name)
            except Exception as exc:
                raise RuntimeError(
                    f"Failed to load blocks from {block_file.name}: {exc}"
                ) from exc

            declared = getattr(module, "BLOCKS", None)
            if declared is None:
                raise RuntimeError(f"{block_file.name} does not define BLOCKS")
            for block in declared:
                self.register(block)

        self.freeze()
        logger.info(
            "Registered %d blocks from %d files",
            len(self._blocks),
            len(block_files),
        )

    # ── reset (for tests) ──────────────────────────────────────────────

    @classmethod
    def reset(cls) -> None:
        """Destroy singleton — only useful in test teardown."""
        cls._instance = None
