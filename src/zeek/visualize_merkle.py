"""
Merkle Path Visualization Module

Renders the sibling path of a storage proof as a tree, from the root down to
the leaf value, to help users see how a proof is laid out.

The left/right labels follow the leaf index: at each level the low bit of the
index decides the label and the index is shifted right. This is a display
convention only. Verification derives positions from the tree key bits
(see zeek.merkle.core.get_key_bits), and the two need not agree.
"""

from typing import List, Optional, Tuple

from rich.console import Console
from rich.text import Text
from rich.tree import Tree

from .models.api_models import StorageProof


def build_merkle_path(proof: StorageProof) -> List[Tuple[bool, str]]:
    """
    Label each sibling hash of a proof, ordered from the root.

    Args:
        proof: Storage proof to lay out

    Returns:
        List of (is_left, sibling_hash) pairs, root level first
    """
    index = proof.index
    path = []
    for sibling_hash in proof.proof:
        is_left = (index & 1) == 1
        path.append((is_left, sibling_hash))
        index >>= 1

    path.reverse()
    return path


def _leaf_label(value: str) -> Text:
    label = Text("Leaf Node (Value): ", style="bold yellow")
    label.append(value, style="yellow")
    return label


def render_merkle_path(proof: StorageProof) -> Tree:
    """Build a rich Tree for the proof: root, one node per level, then the leaf."""
    root = Tree(Text("Root Hash", style="bold blue"))

    node = root
    for is_left, sibling_hash in build_merkle_path(proof):
        colour = "green" if is_left else "cyan"
        label = Text(sibling_hash, style=f"bold {colour}")
        label.append(" (Left Child)" if is_left else " (Right Child)", style=colour)
        node = node.add(label)

    node.add(_leaf_label(proof.value))
    return root


def visualize_merkle_path(proof: StorageProof, console: Optional[Console] = None) -> None:
    """
    Print the Merkle path of a storage proof.

    Args:
        proof: Storage proof to display
        console: Console to print to; a new one is created if None
    """
    console = console or Console()
    console.print(Text("Merkle Tree Visualization:", style="bold"))
    console.print(render_merkle_path(proof))
