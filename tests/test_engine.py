"""Tests for the pressure relaxation engine."""

from dataclasses import dataclass

import pytest

from pneumasim.core.config import SimulationConfig
from pneumasim.core.engine import step
from pneumasim.core.network import (
    Button,
    Compressor,
    Cylinder,
    PneumaticComponent,
    Splitter,
    Tube,
    demo_network,
)

# Far end of a tube that should not count as atmosphere or as any terminal.
DANGLING = "bench/9"


def _tube(tube_id: str, at: str, mass: float = 0.0) -> Tube:
    """Tube with one end on ``at`` and the other end dangling."""
    return Tube(id=tube_id, from_=at, to=DANGLING, residual_mass=mass)


class TestAtmosphereReset:
    def test_vented_tubes_emptied(self):
        tubes = [
            Tube(id="a", from_="atmosphere", to="ghost/1", residual_mass=5.0),
            Tube(id="b", from_="ghost/2", to="atmosphere", residual_mass=-2.0),
            Tube(id="c", residual_mass=1.0),
        ]
        step([], tubes)
        assert [t.residual_mass for t in tubes] == [0.0, 0.0, 0.0]

    def test_sealed_tube_untouched(self):
        tube = Tube(id="a", from_="ghost/1", to="ghost/2", residual_mass=2.5)
        step([], [tube])
        assert tube.residual_mass == 2.5

    def test_empty_network(self):
        step([], [])


class TestCompressor:
    def test_first_two_steps(self):
        comp = Compressor(id="c")
        tube = _tube("t", "c/1")
        step([comp], [tube])
        assert tube.residual_mass == pytest.approx(0.9)
        step([comp], [tube])
        assert tube.residual_mass == pytest.approx(1.53)

    def test_monotonic_and_bounded(self):
        comp = Compressor(id="c")
        tube = _tube("t", "c/1")
        history = []
        for _ in range(60):
            step([comp], [tube])
            history.append(tube.residual_mass)
        assert all(b > a for a, b in zip(history, history[1:]))
        assert history[-1] < 3.0
        assert history[-1] == pytest.approx(3.0, abs=1e-6)

    def test_equilibrium_unchanged(self):
        comp = Compressor(id="c")
        tube = _tube("t", "c/1", mass=3.0)
        step([comp], [tube])
        assert tube.residual_mass == 3.0
        assert comp.terminal_pressures[1] == 3.0

    def test_never_pulls_down(self):
        comp = Compressor(id="c")
        tube = _tube("t", "c/1", mass=4.0)
        step([comp], [tube])
        assert tube.residual_mass == 4.0

    def test_negative_mass_reads_zero(self):
        comp = Compressor(id="c")
        tube = _tube("t", "c/1", mass=-1.0)
        step([comp], [tube])
        assert comp.terminal_pressures[1] == 0.0
        assert tube.residual_mass == pytest.approx(-0.1)

    def test_terminal_pressure_is_pre_transfer(self):
        comp = Compressor(id="c")
        tube = _tube("t", "c/1", mass=1.0)
        step([comp], [tube])
        assert comp.terminal_pressures[1] == 1.0
        assert comp.alert is None

    def test_vented_outlet_refills_each_step(self):
        """An outlet open to atmosphere is emptied, then pushed again."""
        comp = Compressor(id="c")
        tube = Tube(id="t", from_="c/1", to="atmosphere")
        for _ in range(3):
            step([comp], [tube])
            assert tube.residual_mass == pytest.approx(0.9)

    def test_custom_config(self):
        comp = Compressor(id="c")
        tube = _tube("t", "c/1")
        step([comp], [tube], SimulationConfig(diffusion_coefficient=0.5, supply_pressure=6.0))
        assert tube.residual_mass == pytest.approx(3.0)


class TestButton:
    def test_closed_gate_bleeds_output(self):
        button = Button(id="b")
        tube = _tube("t2", "b/2", mass=2.0)
        step([button], [tube])
        assert tube.residual_mass == pytest.approx(2.0 - 2.0 * 0.3)

    def test_closed_gate_leaves_input(self):
        button = Button(id="b")
        t1 = _tube("t1", "b/1", mass=2.0)
        t2 = _tube("t2", "b/2", mass=0.0)
        step([button], [t1, t2])
        assert t1.residual_mass == 2.0
        assert t2.residual_mass == 0.0

    def test_open_gate_transfers(self):
        button = Button(id="b", left_pressed=True)
        t1 = _tube("t1", "b/1", mass=2.0)
        t2 = _tube("t2", "b/2", mass=0.0)
        step([button], [t1, t2])
        assert t1.residual_mass == pytest.approx(1.4)
        assert t2.residual_mass == pytest.approx(0.6)
        assert button.terminal_pressures[1] == 2.0
        assert button.terminal_pressures[2] == 0.0

    def test_open_gate_flows_backwards(self):
        button = Button(id="b", left_pressed=True)
        t1 = _tube("t1", "b/1", mass=0.0)
        t2 = _tube("t2", "b/2", mass=1.0)
        step([button], [t1, t2])
        assert t1.residual_mass == pytest.approx(0.3)
        assert t2.residual_mass == pytest.approx(0.7)

    def test_gates_independent(self):
        button = Button(id="b", right_pressed=True)
        tubes = [
            _tube("t1", "b/1", 2.0),
            _tube("t2", "b/2", 1.0),
            _tube("t3", "b/3", 2.0),
            _tube("t4", "b/4", 0.0),
        ]
        step([button], tubes)
        # left released: output bleeds
        assert tubes[0].residual_mass == 2.0
        assert tubes[1].residual_mass == pytest.approx(0.7)
        # right pressed: 3 feeds 4
        assert tubes[2].residual_mass == pytest.approx(1.4)
        assert tubes[3].residual_mass == pytest.approx(0.6)
        assert button.alert is None

    def test_open_gate_into_unconnected_output(self):
        """Transfer into a missing tube is lost, the inlet still drains."""
        button = Button(id="b", left_pressed=True)
        t1 = _tube("t1", "b/1", mass=1.0)
        step([button], [t1])
        assert t1.residual_mass == pytest.approx(0.7)
        assert button.terminal_pressures[2] == 0.0

    def test_open_gate_looped_back(self):
        button = Button(id="b", left_pressed=True)
        loop = Tube(id="loop", from_="b/1", to="b/2", residual_mass=1.2)
        step([button], [loop, _tube("t3", "b/3"), _tube("t4", "b/4")])
        assert button.alert is None
        assert loop.residual_mass == pytest.approx(1.2)

    def test_toggle(self):
        button = Button(id="b")
        assert button.toggle_left() is True
        assert button.toggle_left() is False
        assert button.toggle_right() is True


class TestCylinder:
    def test_expansion_proportional(self):
        cyl = Cylinder(id="y")
        tube = _tube("t", "y/1", mass=0.75)
        step([cyl], [tube])
        assert cyl.expansion == pytest.approx(0.5)
        assert tube.residual_mass == 0.75

    def test_expansion_not_clamped(self):
        cyl = Cylinder(id="y")
        tube = _tube("t", "y/1", mass=3.0)
        step([cyl], [tube])
        assert cyl.expansion == pytest.approx(2.0)

    def test_negative_mass_gives_zero(self):
        cyl = Cylinder(id="y", expansion=0.8)
        tube = _tube("t", "y/1", mass=-0.5)
        step([cyl], [tube])
        assert cyl.expansion == 0.0

    def test_unconnected_retracts(self):
        cyl = Cylinder(id="y", expansion=1.0)
        step([cyl], [])
        assert cyl.expansion == 0.0
        assert cyl.alert == "No tubes connected to terminal 1"


class TestSplitter:
    def test_pairwise_transfer(self):
        splitter = Splitter(id="s")
        tubes = [_tube("t1", "s/1", 3.0), _tube("t2", "s/2", 1.0), _tube("t3", "s/3", 0.5)]
        step([splitter], tubes)
        assert tubes[0].residual_mass == pytest.approx(1.65)
        assert tubes[1].residual_mass == pytest.approx(1.45)
        assert tubes[2].residual_mass == pytest.approx(1.4)

    def test_conservation(self):
        splitter = Splitter(id="s")
        tubes = [_tube("t1", "s/1", 2.2), _tube("t2", "s/2", 0.1), _tube("t3", "s/3", 1.7)]
        before = sum(t.residual_mass for t in tubes)
        step([splitter], tubes)
        assert sum(t.residual_mass for t in tubes) == pytest.approx(before)

    def test_conservation_with_negative_mass(self):
        splitter = Splitter(id="s")
        tubes = [_tube("t1", "s/1", -1.0), _tube("t2", "s/2", 2.0), _tube("t3", "s/3", 0.0)]
        before = sum(t.residual_mass for t in tubes)
        step([splitter], tubes)
        assert sum(t.residual_mass for t in tubes) == pytest.approx(before)

    def test_equal_pressures_unchanged(self):
        splitter = Splitter(id="s")
        tubes = [_tube(f"t{i}", f"s/{i}", 1.0) for i in (1, 2, 3)]
        step([splitter], tubes)
        assert [t.residual_mass for t in tubes] == [1.0, 1.0, 1.0]

    def test_tube_across_two_terminals(self):
        splitter = Splitter(id="s")
        loop = Tube(id="loop", from_="s/1", to="s/2", residual_mass=2.0)
        tubes = [loop, _tube("t3", "s/3", 0.5)]
        step([splitter], tubes)
        assert splitter.alert is None
        assert splitter.terminal_pressures == {1: 2.0, 2: 2.0, 3: 0.5}
        assert loop.residual_mass == pytest.approx(1.1)
        assert tubes[1].residual_mass == pytest.approx(1.4)
        assert sum(t.residual_mass for t in tubes) == pytest.approx(2.5)


class TestAlerts:
    def test_no_tube_alert_survives_later_connected_terminal(self):
        splitter = Splitter(id="s")
        tubes = [_tube("t2", "s/2", 2.0), _tube("t3", "s/3", 2.0)]
        step([splitter], tubes)
        assert splitter.alert == "No tubes connected to terminal 1"
        assert splitter.terminal_pressures[2] == 2.0

    def test_last_unconnected_terminal_reported(self):
        button = Button(id="b")
        step([button], [_tube("t1", "b/1", 1.0)])
        assert button.alert == "No tubes connected to terminal 4"

    def test_multiple_tubes_abort(self):
        splitter = Splitter(id="s", terminal_pressures={1: 0.0, 2: 0.5, 3: 0.0})
        tubes = [
            _tube("a", "s/1", 1.0),
            _tube("b", "s/1", 1.0),
            _tube("c", "s/2", 2.0),
            _tube("d", "s/3", 0.0),
        ]
        step([splitter], tubes)
        assert splitter.alert == "Multiple tubes connected to terminal 1"
        assert splitter.terminal_pressures[2] == 0.5
        assert [t.residual_mass for t in tubes] == [1.0, 1.0, 2.0, 0.0]

    def test_multiple_tubes_on_later_terminal_blocks_earlier(self):
        splitter = Splitter(id="s")
        tubes = [
            _tube("a", "s/1", 2.0),
            _tube("b", "s/2", 1.0),
            _tube("c", "s/3", 0.0),
            _tube("d", "s/3", 0.0),
        ]
        step([splitter], tubes)
        assert splitter.alert == "Multiple tubes connected to terminal 3"
        assert splitter.terminal_pressures[1] == 0.0
        assert tubes[0].residual_mass == 2.0

    def test_tube_looped_on_one_terminal(self):
        comp = Compressor(id="c")
        tube = Tube(id="t", from_="c/1", to="c/1")
        step([comp], [tube])
        assert comp.alert == "Multiple tubes connected to terminal 1"
        assert tube.residual_mass == 0.0

    def test_alert_cleared_after_rewiring(self):
        comp = Compressor(id="c")
        tube = Tube(id="t", from_="ghost/1", to=DANGLING)
        step([comp], [tube])
        assert comp.alert == "No tubes connected to terminal 1"

        tube.from_ = "c/1"
        step([comp], [tube])
        assert comp.alert is None

    def test_alert_overwritten_each_step(self):
        comp = Compressor(id="c")
        tubes = [_tube("a", "c/1"), _tube("b", "c/1")]
        step([comp], tubes)
        assert comp.alert == "Multiple tubes connected to terminal 1"

        tubes.clear()
        step([comp], tubes)
        assert comp.alert == "No tubes connected to terminal 1"

    def test_dangling_endpoint_is_unconnected(self):
        cyl = Cylinder(id="y")
        step([cyl], [Tube(id="t", from_="y/2", to="y/x", residual_mass=1.0)])
        assert cyl.alert == "No tubes connected to terminal 1"


class TestSharedTubes:
    def _chain(self):
        comp = Compressor(id="c")
        splitter = Splitter(id="s")
        tube = Tube(id="t", from_="c/1", to="s/1")
        return comp, splitter, tube

    def test_later_component_sees_earlier_transfer(self):
        comp, splitter, tube = self._chain()
        step([comp, splitter], [tube])
        assert splitter.terminal_pressures[1] == pytest.approx(0.9)
        assert tube.residual_mass == pytest.approx(0.36)
        assert splitter.alert == "No tubes connected to terminal 3"

    def test_order_matters(self):
        comp, splitter, tube = self._chain()
        step([splitter, comp], [tube])
        assert splitter.terminal_pressures[1] == 0.0
        assert tube.residual_mass == pytest.approx(0.9)


class TestUnknownKind:
    def test_raises(self):
        @dataclass
        class Regulator(PneumaticComponent):
            kind = "regulator"
            terminal_count = 1

        with pytest.raises(ValueError, match="Unknown component kind"):
            step([Regulator(id="r")], [])


class TestDemoBench:
    def test_idle(self):
        bench = demo_network()
        for _ in range(10):
            bench.step()
        cylinder = bench.component("Spring loaded Single acting cylinder 1")
        assert cylinder.expansion == 0.0
        assert bench.tube("tube1").residual_mass > 2.5
        assert bench.component("Pressure source 1").alert is None
        assert bench.component("Valve with push button 1").alert == "No tubes connected to terminal 4"

    def test_press_extends_release_retracts(self):
        bench = demo_network()
        button = bench.component("Valve with push button 1")
        cylinder = bench.component("Spring loaded Single acting cylinder 1")

        button.left_pressed = True
        for _ in range(60):
            bench.step()
        assert cylinder.expansion > 1.0

        button.left_pressed = False
        for _ in range(60):
            bench.step()
        assert cylinder.expansion < 0.01
