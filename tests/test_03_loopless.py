"""Test loop exclusion constraints and loopless FVA."""
import fluxvariability as fv
from fluxvariability.names import *
import numpy as np
import logging
import pytest

LOOP_RXNS = ['R3', 'R4', 'R5']


def test_loop_exclusion_none(model_loop):
    """Test that no constraints are built if loops are allowed."""
    loops = fv.build_loop_exclusion(fv.ModelView(model_loop), LOOPS_ALLOWED)
    assert (loops.components == [])
    assert (loops.key() == frozenset())


def test_loop_exclusion_original(curr_solver, model_loop):
    """Test that all internal reactions are constrained with the method 'original'."""
    view = fv.ModelView(model_loop)
    loops = fv.build_loop_exclusion(view, ORIGINAL, curr_solver)
    assert (len(loops.components) == 1)
    rxns, N = loops.components[0]
    assert (rxns == view.internal_reactions())
    assert (np.allclose(view.S[:, rxns] @ N, 0.0))
    assert (loops.key([1]) == loops.key([5]) == frozenset([0]))


def test_fast_snp(curr_solver, model_loop):
    """Test that Fast-SNP finds the only feasible loop."""
    view = fv.ModelView(model_loop)
    internal = view.internal_reactions()
    S_int = view.S[:, internal]
    lb_dir = [-1.0 if view.lb[j] < 0 else 0.0 for j in internal]
    ub_dir = [1.0 if view.ub[j] > 0 else 0.0 for j in internal]
    B = fv.fast_snp(S_int, lb_dir, ub_dir, curr_solver)
    assert (B.shape == (6, 1))
    assert (np.allclose(S_int @ B, 0.0))
    assert ([view.reaction_ids[internal[i]] for i in np.nonzero(B[:, 0])[0]] == LOOP_RXNS)


def test_elementary_cycles(curr_solver, model_two_loop):
    """Test the enumeration of elementary cycles."""
    view = fv.ModelView(model_two_loop)
    internal = view.internal_reactions()
    lb_dir = [-1.0 if view.lb[j] < 0 else 0.0 for j in internal]
    ub_dir = [1.0 if view.ub[j] > 0 else 0.0 for j in internal]
    cycles = fv.elementary_cycles(view.S[:, internal], lb_dir, ub_dir, curr_solver)
    assert (cycles.shape == (3, 1))
    v = cycles[:, 0] / cycles[1, 0]
    assert (np.allclose(v, [0.0, 1.0, -1.0]))
    assert (fv.elementary_cycles(view.S[:, internal], lb_dir, ub_dir, curr_solver, limit=0) is None)


@pytest.mark.parametrize("method", [FASTSNP, LLC_NS, LLC_EFM])
def test_loop_components(curr_solver, model_loop, method):
    """Test that only the reactions of the loop are constrained."""
    view = fv.ModelView(model_loop)
    loops = fv.build_loop_exclusion(view, method, curr_solver)
    assert (len(loops.components) == 1)
    rxns, N = loops.components[0]
    assert ([view.reaction_ids[j] for j in rxns] == LOOP_RXNS)
    assert (np.allclose(view.S[:, rxns] @ N, 0.0))
    if method == FASTSNP:
        assert (loops.key([1]) == frozenset([0]))
    else:
        assert (loops.key([1]) == frozenset())
        assert (loops.key([5]) == frozenset([0]))


def test_loop_law_shape(curr_solver, model_loop):
    """Test the variables and constraints of the loop law."""
    view = fv.ModelView(model_loop)
    loops = fv.build_loop_exclusion(view, LLC_NS, curr_solver)
    A_eq, b_eq, ic, lb, ub, vtype = loops.loop_law(loops.key(), view.numr)
    assert (A_eq.shape == (1, 8 + 6))
    assert (len(ic.binv) == 12)
    assert (vtype == 'BBBCCC')
    assert (lb == [0.0] * 3 + [-1000.0] * 3)
    assert (ub == [1.0] * 3 + [1000.0] * 3)
    A_eq, b_eq, ic, lb, ub, vtype = loops.loop_law(frozenset(), view.numr)
    assert (ic is None and vtype == '')


def test_unsupported_method(model_loop):
    """Test that unknown loop exclusion methods are rejected."""
    with pytest.raises(fv.UnsupportedLoopMethod):
        fv.build_loop_exclusion(fv.ModelView(model_loop), 'fancy')
    with pytest.raises(fv.UnsupportedLoopMethod):
        fv.flux_variability(model_loop, method='fancy')


def test_loopless_fva(curr_solver, model_loop, loop_method):
    """Test that all loop exclusion methods remove the loop."""
    result = fv.flux_variability(model_loop, solver=curr_solver, method=loop_method)
    ranges = result.to_frame()
    expected = {
        'EX_A': (-1.0, -0.9),
        'R1': (0.4, 1.0),
        'R2': (0.0, 0.5),
        'R6': (0.0, 0.5),
        'R3': (0.0, 1.0),
        'R4': (0.0, 1.0),
        'R5': (0.0, 1.0),
        'EX_E': (0.9, 1.0)
    }
    for rid, (lo, hi) in expected.items():
        assert (abs(ranges.loc[rid, 'minimum'] - lo) <= 1e-4)
        assert (abs(ranges.loc[rid, 'maximum'] - hi) <= 1e-4)
    assert (result.loop_method == loop_method)


def test_loops_allowed_superset(curr_solver, model_loop, loop_method):
    """Test that the ranges with loops contain the loopless ranges."""
    with_loops = fv.flux_variability(model_loop, solver=curr_solver, allow_loops=True)
    loopless = fv.flux_variability(model_loop, solver=curr_solver, method=loop_method)
    for i in range(len(with_loops)):
        assert (with_loops.minimum[i] <= loopless.minimum[i] + 1e-6)
        assert (with_loops.maximum[i] >= loopless.maximum[i] - 1e-6)
    assert (abs(with_loops.maximum[with_loops.reaction_ids.index('R3')] - 1000.0) <= 1e-4)
    assert (abs(with_loops.minimum[with_loops.reaction_ids.index('R4')] + 999.1) <= 1e-4)


def test_two_reaction_loop(curr_solver, model_two_loop, loop_method):
    """Test a loop of two reactions with and without loops allowed."""
    rxns = ['R2a', 'R2b']
    with_loops = fv.flux_variability(model_two_loop, solver=curr_solver, rxn_name_list=rxns)
    loopless = fv.flux_variability(model_two_loop, solver=curr_solver, rxn_name_list=rxns, method=loop_method)
    assert (np.allclose(with_loops.minimum, [0.0, -991.0], atol=1e-4))
    assert (np.allclose(with_loops.maximum, [1000.0, 10.0], atol=1e-4))
    assert (np.allclose(loopless.minimum, [0.0, 0.0], atol=1e-4))
    assert (np.allclose(loopless.maximum, [10.0, 10.0], atol=1e-4))
    for i in range(2):
        assert (with_loops.maximum[i] - with_loops.minimum[i] > loopless.maximum[i] - loopless.minimum[i])


def test_efm_limit_fallback(curr_solver, model_loop, caplog):
    """Test that LLC-EFM falls back to null space components when too many cycles exist."""
    view = fv.ModelView(model_loop)
    with caplog.at_level(logging.WARNING):
        loops = fv.build_loop_exclusion(view, LLC_EFM, curr_solver, efm_limit=0)
    assert (any('limit' in r.getMessage() for r in caplog.records))
    assert (loops.method == LLC_EFM)
    assert (loops.localized)
    reference = fv.build_loop_exclusion(view, LLC_NS, curr_solver)
    assert ([rxns for rxns, _ in loops.components] == [rxns for rxns, _ in reference.components])
    rxns, N = loops.components[0]
    assert ([view.reaction_ids[j] for j in rxns] == LOOP_RXNS)
    assert (np.allclose(view.S[:, rxns] @ N, 0.0))


def test_objective_in_loop(curr_solver, model_two_loop, loop_method):
    """Test that loops through an internal objective reaction are excluded."""
    model_two_loop.objective = 'R2a'
    rxns = ['R2a', 'R2b']
    view = fv.ModelView(model_two_loop)
    assert ('R2a' in [view.reaction_ids[j] for j in view.internal_reactions()])
    with_loops = fv.flux_variability(model_two_loop, solver=curr_solver, rxn_name_list=rxns)
    assert (abs(with_loops.objective_value - 1000.0) <= 1e-6)
    loopless = fv.flux_variability(model_two_loop, solver=curr_solver, rxn_name_list=rxns, method=loop_method)
    assert (abs(loopless.objective_value - 10.0) <= 1e-6)
    assert (np.allclose(loopless.minimum, [9.0, 0.0], atol=1e-4))
    assert (np.allclose(loopless.maximum, [10.0, 1.0], atol=1e-4))


def test_constraint_on_loop(curr_solver, model_loop, loop_method):
    """Test that additional constraints on loop reactions are loop-free for all methods."""
    with_loops = fv.flux_variability(model_loop, solver=curr_solver, constraints='R4 <= -5', rxn_name_list=['R4'])
    assert (abs(with_loops.maximum[0] + 5.0) <= 1e-6)
    with pytest.raises(fv.BaselineInfeasible):
        fv.flux_variability(model_loop, solver=curr_solver, constraints='R4 <= -5', method=loop_method)
    result = fv.flux_variability(model_loop, solver=curr_solver, constraints='R4 <= 0.5', method=loop_method)
    ranges = result.to_frame()
    expected = {'R1': (0.4, 1.0), 'R3': (0.4, 1.0), 'R4': (0.0, 0.5), 'R5': (0.0, 0.5), 'EX_E': (0.9, 1.0)}
    for rid, (lo, hi) in expected.items():
        assert (abs(ranges.loc[rid, 'minimum'] - lo) <= 1e-4)
        assert (abs(ranges.loc[rid, 'maximum'] - hi) <= 1e-4)


def test_coupled_components(curr_solver, model_loop):
    """Test that sub-problems constrain the loops of reactions in additional constraints."""
    view = fv.ModelView(model_loop)
    loops = fv.build_loop_exclusion(view, LLC_NS, curr_solver)
    assert (fv.FVAProblem(view, loops).key(1) == frozenset())
    view = fv.ModelView(model_loop, constraints='R4 <= 0.5')
    assert (view.coupled_reactions() == [5, 7])
    problem = fv.FVAProblem(view, loops)
    assert (problem.key(1) == frozenset([0]))
    assert (problem.objective_key() == frozenset([0]))
