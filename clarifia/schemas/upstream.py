"""
Normalisation of an OpenAI Responses API payload into one raw text string.

The upstream either hands back a convenience ``output_text`` string or a list
of output items, each carrying a list of typed content blocks. Both shapes are
captured as a small tagged union so the extraction rule stays a pure function.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional, Union

TEXT_BLOCK_KINDS = frozenset({"output_text", "text"})


@dataclass(frozen=True)
class ContentBlock:
    kind: Optional[str]
    text: Optional[str] = None

    @property
    def is_text(self) -> bool:
        return self.kind in TEXT_BLOCK_KINDS


@dataclass(frozen=True)
class DirectText:
    text: str


@dataclass(frozen=True)
class BlockList:
    blocks: tuple[ContentBlock, ...] = field(default_factory=tuple)


UpstreamOutput = Union[DirectText, BlockList]


def _blocks_from(output: Any) -> tuple[ContentBlock, ...]:
    if not isinstance(output, list):
        return ()

    blocks: list[ContentBlock] = []
    for item in output:
        content = item.get("content") if isinstance(item, dict) else None
        if not isinstance(content, list):
            continue
        for block in content:
            if not isinstance(block, dict):
                continue
            text = block.get("text")
            blocks.append(
                ContentBlock(kind=block.get("type"), text=text if isinstance(text, str) else None)
            )
    return tuple(blocks)


def parse_upstream_response(data: Any) -> UpstreamOutput:
    if not isinstance(data, dict):
        return BlockList()

    direct = data.get("output_text")
    if isinstance(direct, str) and direct:
        return DirectText(direct)

    return BlockList(_blocks_from(data.get("output")))


def extract_raw_text(output: UpstreamOutput) -> str:
    if isinstance(output, DirectText):
        return output.text
    return "\n".join(block.text or "" for block in output.blocks if block.is_text)
