"""Tests for SimBus channel resolution."""

import pytest

from fmu_annotate.documents import DocumentIndex, Kind
from fmu_annotate.exceptions import ConfigError, NotFoundError
from fmu_annotate.resolver import (
    effective_selectors,
    resolve_channel,
    selectors_match,
    single_stack,
)

MODEL = """
kind: Model
metadata:
  name: Target
spec:
  channels:
    - alias: signal_channel
      selectors:
        channel: signal_vector
    - alias: network_channel
      selectors:
        channel: network_vector
"""


def _stack(channels: str) -> str:
    return f"""
kind: Stack
metadata:
  name: stack
spec:
  models:
    - name: simbus
      model:
        name: simbus
      channels:
        - name: physical
          selectors:
            channel: signal_vector
    - name: target_inst
      model:
        name: Target
      channels:
{channels}
"""


def _group(name: str, labels: str) -> str:
    return f"""
kind: SignalGroup
metadata:
  name: {name}
  labels:
{labels}
spec:
  signals:
    - signal: foo
"""


@pytest.fixture
def simulation(tmp_path, write_yaml):
    """Write a stack, the Target model and signal groups; return a scanned index."""

    def _build(stack: str, groups: str) -> DocumentIndex:
        write_yaml("data/simulation.yaml", stack)
        write_yaml("data/model.yaml", MODEL)
        write_yaml("model/target/signalgroup.yaml", groups)
        index = DocumentIndex()
        index.scan(tmp_path)
        return index

    return _build


def _signal_group(index, name):
    return index.find_by_name(Kind.SIGNAL_GROUP, name)


class TestSelectorsMatch:
    """Test selector subset matching."""

    def test_exact_match(self):
        assert selectors_match({"channel": "signal_vector"}, {"channel": "signal_vector"})

    def test_subset_match(self):
        assert selectors_match(
            {"channel": "signal_vector"}, {"channel": "signal_vector", "model": "target"}
        )

    def test_missing_key(self):
        assert not selectors_match({"channel": "x", "model": "target"}, {"channel": "x"})

    def test_value_mismatch(self):
        assert not selectors_match({"channel": "x"}, {"channel": "y"})

    def test_values_compared_by_equality(self):
        assert selectors_match({"id": 1}, {"id": 1})
        assert not selectors_match({"id": 1}, {"id": "1"})


class TestSingleStack:
    """Test the one-Stack requirement."""

    def test_no_stack(self, tmp_path, write_yaml):
        write_yaml("model.yaml", MODEL)
        index = DocumentIndex()
        index.scan(tmp_path)
        with pytest.raises(ConfigError, match="contains 0 Stacks"):
            single_stack(index)

    def test_two_stacks(self, tmp_path, write_yaml):
        write_yaml("a.yaml", _stack("        - name: x\n"))
        write_yaml("b.yaml", _stack("        - name: y\n"))
        index = DocumentIndex()
        index.scan(tmp_path)
        with pytest.raises(ConfigError, match="contains 2 Stacks"):
            single_stack(index)

    def test_resolve_requires_single_stack(self, tmp_path, write_yaml):
        write_yaml("g.yaml", _group("signal", "    channel: signal_vector"))
        index = DocumentIndex()
        index.scan(tmp_path)
        with pytest.raises(ConfigError):
            resolve_channel(index, index.documents(Kind.SIGNAL_GROUP)[0])


class TestResolveChannel:
    """Test channel resolution for SignalGroups."""

    def test_binding_selectors(self, simulation):
        index = simulation(
            _stack(
                "        - name: physical\n"
                "          alias: signal_channel\n"
                "          selectors:\n"
                "            channel: signal_vector\n"
            ),
            _group("signal", "    channel: signal_vector\n    model: target"),
        )
        assert resolve_channel(index, _signal_group(index, "signal")) == "physical"

    def test_model_fallback(self, simulation):
        """A binding without selectors uses the Model channel with the same alias."""
        index = simulation(
            _stack("        - name: network\n          alias: network_channel\n"),
            _group("network", "    channel: network_vector"),
        )
        assert resolve_channel(index, _signal_group(index, "network")) == "network"

    def test_binding_selectors_take_precedence(self, simulation):
        # The Model declares channel=signal_vector for this alias; the binding overrides it.
        index = simulation(
            _stack(
                "        - name: physical\n"
                "          alias: signal_channel\n"
                "          selectors:\n"
                "            channel: other_vector\n"
            ),
            _group("signal", "    channel: signal_vector"),
        )
        with pytest.raises(NotFoundError):
            resolve_channel(index, _signal_group(index, "signal"))

    def test_empty_binding_selectors_fall_back(self, simulation):
        """An explicit `selectors: {}` is treated as missing, not as match-all."""
        index = simulation(
            _stack(
                "        - name: network\n"
                "          alias: network_channel\n"
                "          selectors: {}\n"
            ),
            _group("signal", "    channel: signal_vector"),
        )
        stack = single_stack(index)
        instance = stack.spec.models[1]

        assert effective_selectors(index, instance, instance.channels[0]) == {
            "channel": "network_vector"
        }
        with pytest.raises(NotFoundError):
            resolve_channel(index, _signal_group(index, "signal"))

    def test_first_match_wins(self, simulation):
        """Bindings are tried in declared order."""
        index = simulation(
            _stack(
                "        - name: first\n"
                "          selectors:\n"
                "            channel: signal_vector\n"
                "        - name: second\n"
                "          selectors:\n"
                "            channel: signal_vector\n"
            ),
            _group("signal", "    channel: signal_vector"),
        )
        assert resolve_channel(index, _signal_group(index, "signal")) == "first"

    def test_simbus_instance_skipped(self, simulation):
        # Only simbus carries a binding with matching selectors.
        index = simulation(
            _stack("        - name: unrelated\n          selectors:\n            channel: other\n"),
            _group("signal", "    channel: signal_vector"),
        )
        with pytest.raises(NotFoundError, match="no Model:Channel"):
            resolve_channel(index, _signal_group(index, "signal"))

    def test_no_selectors_anywhere(self, simulation):
        index = simulation(
            _stack("        - name: physical\n          alias: unknown_alias\n"),
            _group("signal", "    channel: signal_vector"),
        )
        with pytest.raises(NotFoundError):
            resolve_channel(index, _signal_group(index, "signal"))

    def test_missing_model_definition(self, tmp_path, write_yaml):
        write_yaml(
            "data/simulation.yaml",
            _stack("        - name: physical\n          alias: signal_channel\n"),
        )
        write_yaml("g.yaml", _group("signal", "    channel: signal_vector"))
        index = DocumentIndex()
        index.scan(tmp_path)
        with pytest.raises(NotFoundError):
            resolve_channel(index, _signal_group(index, "signal"))

    def test_stack_without_models(self, tmp_path, write_yaml):
        write_yaml("data/simulation.yaml", "kind: Stack\nmetadata:\n  name: empty\nspec: {}\n")
        write_yaml("g.yaml", _group("signal", "    channel: signal_vector"))
        index = DocumentIndex()
        index.scan(tmp_path)
        with pytest.raises(NotFoundError, match="contains no models"):
            resolve_channel(index, _signal_group(index, "signal"))

    def test_reference_simulation(self, sim_index):
        assert resolve_channel(sim_index, _signal_group(sim_index, "in_vector")) == "in"
        assert resolve_channel(sim_index, _signal_group(sim_index, "out_vector")) == "out"
        with pytest.raises(NotFoundError):
            resolve_channel(sim_index, _signal_group(sim_index, "network"))


class TestEffectiveSelectors:
    """Test the selector fallback chain."""

    def test_chain_order(self, sim_index):
        stack = single_stack(sim_index)
        instance = stack.spec.models[1]
        in_binding, out_binding = instance.channels

        assert effective_selectors(sim_index, instance, in_binding) == {"channel": "in_vector"}
        assert effective_selectors(sim_index, instance, out_binding) == {"channel": "out_vector"}
        assert effective_selectors(sim_index, instance, out_binding, chain=()) is None
