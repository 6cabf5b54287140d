"""
Tests for Merkle Path Visualization
"""

import unittest
import sys
import os
from io import StringIO

from rich.console import Console

# Add src directory to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from zeek.models import StorageProof
from zeek.visualize_merkle import build_merkle_path, render_merkle_path, visualize_merkle_path

SIBLINGS = ["0x" + "11" * 32, "0x" + "22" * 32, "0x" + "33" * 32]


def make_proof(index):
    return StorageProof(key="0x" + "00" * 32, value="0x" + "00" * 31 + "07", index=index, proof=SIBLINGS)


class TestBuildMerklePath(unittest.TestCase):

    def test_root_level_first(self):
        path = build_merkle_path(make_proof(0))
        self.assertEqual([sibling for _, sibling in path], list(reversed(SIBLINGS)))

    def test_labels_follow_index_bits(self):
        # index 0b101: levels from the leaf are left, right, left
        path = build_merkle_path(make_proof(5))
        self.assertEqual([is_left for is_left, _ in path], [True, False, True])

        path = build_merkle_path(make_proof(6))
        self.assertEqual([is_left for is_left, _ in path], [True, True, False])

    def test_empty_proof(self):
        proof = StorageProof(key="0x" + "00" * 32, value="0x01", index=3, proof=[])
        self.assertEqual(build_merkle_path(proof), [])


class TestRendering(unittest.TestCase):

    def render(self, proof):
        output = StringIO()
        console = Console(file=output, width=200, color_system=None)
        visualize_merkle_path(proof, console)
        return output.getvalue()

    def test_output(self):
        text = self.render(make_proof(1))

        self.assertIn("Merkle Tree Visualization:", text)
        self.assertIn("Root Hash", text)
        self.assertIn("0x" + "11" * 32 + " (Left Child)", text)
        self.assertIn("0x" + "33" * 32 + " (Right Child)", text)
        self.assertIn("Leaf Node (Value): 0x" + "00" * 31 + "07", text)

    def test_nodes_nest_root_to_leaf(self):
        text = self.render(make_proof(0))
        self.assertLess(text.index("33" * 32), text.index("22" * 32))
        self.assertLess(text.index("22" * 32), text.index("11" * 32))
        self.assertLess(text.index("11" * 32), text.index("Leaf Node"))

    def test_tree_depth(self):
        tree = render_merkle_path(make_proof(0))
        depth = 0
        node = tree
        while node.children:
            self.assertEqual(len(node.children), 1)
            node = node.children[0]
            depth += 1
        # one node per sibling plus the leaf
        self.assertEqual(depth, len(SIBLINGS) + 1)


if __name__ == "__main__":
    unittest.main(verbosity=2)
