import copy
import unittest

from domain_types import AssetRecord, AssetTree, LocationRecord, TreeNode
from tree_builder import build_tree
from tree_filters import (
    FilterCriteria,
    apply_filters,
    has_energy_sensor,
    is_critical,
    text_match,
)
from tree_views import render_text, tree_to_dicts


def _plant_tree() -> AssetTree:
    return build_tree(
        [LocationRecord(id="1", name="Plant A")],
        [
            AssetRecord(id="10", name="Motor", location_id="1"),
            AssetRecord(
                id="11",
                name="Vibration Sensor",
                parent_id="10",
                sensor_type="energy",
                status="critical",
            ),
        ],
    )


def _factory_tree() -> AssetTree:
    return build_tree(
        [
            LocationRecord(id="L1", name="Production Area"),
            LocationRecord(id="L2", name="Charcoal Storage", parent_id="L1"),
            LocationRecord(id="L3", name="Office"),
        ],
        [
            AssetRecord(id="A1", name="Conveyor Belt", location_id="L2"),
            AssetRecord(
                id="C1", name="Motor RT Coal", parent_id="A1",
                sensor_type="energy", status="operating",
            ),
            AssetRecord(
                id="C2", name="Motor Tension", parent_id="A1",
                sensor_type="vibration", status="alert",
            ),
            AssetRecord(
                id="C3", name="Fan Motor", location_id="L3",
                sensor_type="energy", status="critical",
            ),
            AssetRecord(
                id="C4", name="Loose Sensor",
                sensor_type="vibration", status="critical",
            ),
        ],
    )


def _path_names(nodes: list[TreeNode]) -> list[str]:
    names: list[str] = []
    while nodes:
        names.append(nodes[0].name)
        nodes = nodes[0].children
    return names


class PredicateTests(unittest.TestCase):
    def test_text_match_is_case_insensitive(self) -> None:
        node = TreeNode(id="1", name="Vibration Sensor", kind="component")
        self.assertTrue(text_match("SENSOR")(node))
        self.assertTrue(text_match("  vib ")(node))
        self.assertFalse(text_match("motor")(node))

    def test_energy_and_critical_predicates(self) -> None:
        node = TreeNode(
            id="1", name="S", kind="component",
            sensor_type="energy", status="critical",
        )
        self.assertTrue(has_energy_sensor(node))
        self.assertTrue(is_critical(node))
        plain = TreeNode(id="2", name="A", kind="asset")
        self.assertFalse(has_energy_sensor(plain))
        self.assertFalse(is_critical(plain))

    def test_blank_text_is_inactive(self) -> None:
        self.assertFalse(FilterCriteria(text="   ").is_active)
        self.assertTrue(FilterCriteria(critical=True).is_active)


class ApplyFiltersTests(unittest.TestCase):
    def test_no_filters_returns_tree_unchanged(self) -> None:
        tree = _plant_tree()
        self.assertIs(apply_filters(tree, FilterCriteria()), tree)

    def test_energy_filter_keeps_full_path(self) -> None:
        result = apply_filters(_plant_tree(), FilterCriteria(energy_sensor=True))
        self.assertEqual(
            _path_names(result.nodes),
            ["Plant A", "Motor", "Vibration Sensor"],
        )

    def test_text_filter_prunes_non_matching_descendants(self) -> None:
        result = apply_filters(_plant_tree(), FilterCriteria(text="plant"))
        self.assertEqual(len(result.nodes), 1)
        self.assertEqual(result.nodes[0].name, "Plant A")
        self.assertEqual(result.nodes[0].children, [])

    def test_root_is_kept_when_nothing_matches(self) -> None:
        result = apply_filters(_plant_tree(), FilterCriteria(text="nothing"))
        self.assertEqual(result.root.kind, "root")
        self.assertEqual(result.nodes, [])

    def test_filters_combine_with_and(self) -> None:
        result = apply_filters(
            _factory_tree(),
            FilterCriteria(energy_sensor=True, critical=True),
        )
        self.assertEqual([node.name for node in result.nodes], ["Office"])
        self.assertEqual(_path_names(result.nodes), ["Office", "Fan Motor"])

    def test_text_and_energy_require_both_on_same_node(self) -> None:
        result = apply_filters(
            _factory_tree(),
            FilterCriteria(text="tension", energy_sensor=True),
        )
        self.assertEqual(result.nodes, [])

    def test_critical_keeps_sibling_order(self) -> None:
        result = apply_filters(_factory_tree(), FilterCriteria(critical=True))
        self.assertEqual(
            [node.name for node in result.nodes],
            ["Office", "Loose Sensor"],
        )

    def test_ancestors_of_every_match_are_kept(self) -> None:
        tree = _factory_tree()
        result = apply_filters(tree, FilterCriteria(text="motor"))
        kept = {node.id for node in result.iter_nodes()}
        self.assertTrue({"C1", "C2", "C3"} <= kept)
        self.assertTrue({"L1", "L2", "A1", "L3"} <= kept)
        self.assertNotIn("C4", kept)

    def test_input_tree_is_not_mutated(self) -> None:
        tree = _factory_tree()
        before = copy.deepcopy(tree_to_dicts(tree))
        result = apply_filters(tree, FilterCriteria(text="fan", critical=True))
        self.assertEqual(tree_to_dicts(tree), before)
        self.assertIsNot(result.root, tree.root)
        self.assertIsNot(result.nodes[0], tree.nodes[1])

    def test_clearing_filters_restores_full_tree(self) -> None:
        tree = _factory_tree()
        apply_filters(tree, FilterCriteria(text="fan"))
        self.assertEqual(
            tree_to_dicts(apply_filters(tree, FilterCriteria())),
            tree_to_dicts(tree),
        )


class DeepTreeTests(unittest.TestCase):
    def setUp(self) -> None:
        self.depth = 5_000
        locations = [LocationRecord(id="0", name="L0")]
        locations += [
            LocationRecord(id=str(i), name=f"L{i}", parent_id=str(i - 1))
            for i in range(1, self.depth)
        ]
        self.tree = build_tree(
            locations,
            [AssetRecord(
                id="s", name="Deep Sensor", location_id=str(self.depth - 1),
                sensor_type="energy",
            )],
        )

    def test_filter_handles_deep_chain(self) -> None:
        result = apply_filters(self.tree, FilterCriteria(energy_sensor=True))
        self.assertEqual(result.node_count(), self.depth + 1)
        self.assertEqual(_path_names(result.nodes)[-1], "Deep Sensor")

    def test_views_handle_deep_chain(self) -> None:
        lines = render_text(self.tree)
        self.assertEqual(len(lines), self.depth + 1)
        self.assertTrue(lines[-1].endswith("[C] Deep Sensor [energy]"))
        payload = tree_to_dicts(self.tree)[0]
        levels = 0
        while payload["children"]:
            payload = payload["children"][0]
            levels += 1
        self.assertEqual(levels, self.depth)
        self.assertEqual(payload["name"], "Deep Sensor")


if __name__ == "__main__":
    unittest.main()
