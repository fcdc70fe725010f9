"""Test flux vectors selected by secondary objectives."""
import fluxvariability as fv
from fluxvariability.names import *
import numpy as np
import pytest

RXNS = ['R1', 'R3', 'R4', 'EX_E']


def stoich(model):
    return fv.ModelView(model).S.toarray()


def check_vectors(result, model, tol=1e-5):
    """Flux vectors attain the flux bounds and satisfy the steady-state constraints."""
    S = stoich(model)
    ids = result.model_reaction_ids
    for k, rid in enumerate(result.reaction_ids):
        j = ids.index(rid)
        for V, bound in [(result.v_min, result.minimum[k]), (result.v_max, result.maximum[k])]:
            v = V[:, k]
            assert (abs(v[j] - bound) <= tol)
            assert (np.allclose(S @ v, 0.0, atol=tol))
            for i, r in enumerate(model.reactions):
                assert (r.lower_bound - tol <= v[i] <= r.upper_bound + tol)


def test_fba_vectors(curr_solver, model_loop):
    """Test that flux vectors of the bound solves are returned."""
    result = fv.flux_variability(model_loop, solver=curr_solver, rxn_name_list=RXNS, return_fluxes=True)
    assert (result.min_norm == FBA)
    assert (result.v_min.shape == (8, 4))
    assert (result.v_max.shape == (8, 4))
    check_vectors(result, model_loop)
    frame = result.fluxes_frame(MAXIMIZE)
    assert (list(frame.columns) == RXNS)
    assert (frame.shape == (8, 4))


def test_no_vectors(curr_solver, model_loop):
    """Test that no flux vectors are computed by default."""
    result = fv.flux_variability(model_loop, solver=curr_solver, rxn_name_list=RXNS)
    assert (result.v_min is None and result.v_max is None)
    with pytest.raises(ValueError):
        result.fluxes_frame()


def test_one_norm(curr_solver, model_loop):
    """Test that 1-norm minimal vectors are not larger than the FBA vectors."""
    fba = fv.flux_variability(model_loop, solver=curr_solver, rxn_name_list=RXNS, min_norm=FBA)
    one = fv.flux_variability(model_loop, solver=curr_solver, rxn_name_list=RXNS, min_norm=ONE_NORM)
    check_vectors(one, model_loop)
    assert (np.allclose(one.minimum, fba.minimum) and np.allclose(one.maximum, fba.maximum))
    for V_one, V_fba in [(one.v_min, fba.v_min), (one.v_max, fba.v_max)]:
        assert (np.all(np.abs(V_one).sum(axis=0) <= np.abs(V_fba).sum(axis=0) + 1e-6))
    # the maximum of EX_E needs no flux through the loop
    k = RXNS.index('EX_E')
    assert (abs(np.abs(one.v_max[:, k]).sum() - 4.0) <= 1e-6)


def test_zero_norm(curr_solver, model_loop):
    """Test that 0-norm vectors have no more active reactions than the FBA vectors."""
    fba = fv.flux_variability(model_loop, solver=curr_solver, rxn_name_list=RXNS, min_norm=FBA)
    zero = fv.flux_variability(model_loop, solver=curr_solver, rxn_name_list=RXNS, min_norm=ZERO_NORM)
    check_vectors(zero, model_loop)
    for V_zero, V_fba in [(zero.v_min, fba.v_min), (zero.v_max, fba.v_max)]:
        assert (np.all((np.abs(V_zero) > 1e-8).sum(axis=0) <= (np.abs(V_fba) > 1e-8).sum(axis=0)))
    assert (fv.count_nonzero([0.0, 1e-9, -2.0, 3.0]) == 2)


def test_min_orig_sol(curr_solver, model_loop):
    """Test that vectors close to a reference flux vector are returned."""
    ref = [-1.0, 0.5, 0.5, 0.5, 1.0, 0.0, 0.0, 1.0]
    fba = fv.flux_variability(model_loop, solver=curr_solver, rxn_name_list=RXNS, min_norm=FBA)
    orig = fv.flux_variability(model_loop, solver=curr_solver, rxn_name_list=RXNS, min_norm=MIN_ORIG_SOL, ref_flux=ref)
    check_vectors(orig, model_loop)
    r = np.array(ref)[:, None]
    assert (np.all(np.abs(orig.v_max - r).sum(axis=0) <= np.abs(fba.v_max - r).sum(axis=0) + 1e-6))
    # the reference vector itself attains the maximum of EX_E
    assert (np.allclose(orig.v_max[:, RXNS.index('EX_E')], ref, atol=1e-6))
    with pytest.raises(fv.InvalidInput):
        fv.flux_variability(model_loop, solver=curr_solver, min_norm=MIN_ORIG_SOL, ref_flux=ref[:3])


def test_min_orig_sol_default_reference(curr_solver, model_loop):
    """Test that the reference optimization is used as default reference vector."""
    result = fv.flux_variability(model_loop, solver=curr_solver, rxn_name_list=['EX_E'], min_norm=MIN_ORIG_SOL)
    assert (np.allclose(result.v_max[:, 0], result.reference_flux, atol=1e-6))


def test_loopless_vectors(curr_solver, model_loop):
    """Test that loopless flux vectors contain no loop."""
    result = fv.flux_variability(model_loop, solver=curr_solver, rxn_name_list=RXNS, method=LLC_NS, min_norm=ONE_NORM)
    check_vectors(result, model_loop)
    ids = result.model_reaction_ids
    loop = [ids.index(r) for r in ['R3', 'R4', 'R5']]
    for V in [result.v_min, result.v_max]:
        assert (np.all(V[loop, :] >= -1e-6))


def test_incompatible_options(model_loop):
    """Test option combinations that cannot be solved."""
    with pytest.raises(fv.IncompatibleOptions):
        fv.flux_variability(model_loop, method=ORIGINAL, min_norm=MIN_ORIG_SOL)
    if not fv.avail_qp_solvers:
        with pytest.raises(fv.IncompatibleOptions):
            fv.flux_variability(model_loop, min_norm=TWO_NORM)
    with pytest.raises(fv.IncompatibleOptions):
        fv.flux_variability(model_loop, solver=GLPK, min_norm=TWO_NORM)


@pytest.mark.skipif(not fv.avail_qp_solvers, reason="No solver for quadratic problems installed")
def test_two_norm(model_loop):
    """Test that 2-norm minimal vectors are not larger than the FBA and 1-norm vectors."""
    solver = sorted(fv.avail_qp_solvers)[0]
    fba = fv.flux_variability(model_loop, solver=solver, rxn_name_list=RXNS, min_norm=FBA)
    two = fv.flux_variability(model_loop, solver=solver, rxn_name_list=RXNS, min_norm=TWO_NORM)
    one = fv.flux_variability(model_loop, solver=solver, rxn_name_list=RXNS, min_norm=ONE_NORM)
    check_vectors(two, model_loop, tol=1e-5)
    for V in [fba.v_max, one.v_max]:
        assert (np.all((two.v_max**2).sum(axis=0) <= (V**2).sum(axis=0) + 1e-5))
