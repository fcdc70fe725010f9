"""Test solver interfaces, model views and option handling."""
import fluxvariability as fv
from fluxvariability.names import *
from scipy import sparse
from numpy import inf
import logging
import pytest


def test_solver_availability(curr_solver):
    """Test solver availability."""
    assert (curr_solver in fv.avail_solvers)


def test_select_solver(curr_solver, model_loop):
    """Test solver choice."""
    assert (fv.select_solver() in [GLPK, GUROBI])
    assert (fv.select_solver('notasolver') in [GLPK, GUROBI])
    assert (fv.select_solver(curr_solver) == curr_solver)
    model_loop.solver = curr_solver
    assert (fv.select_solver(None, model_loop) == curr_solver)


def test_lp(curr_solver):
    """Test LP construction and solution."""
    lp = fv.MILP_LP(c=[-1, -1],
                    A_ineq=sparse.csr_matrix([[1, 1]]),
                    b_ineq=[2],
                    lb=[0, 0],
                    ub=[1, 1.5],
                    solver=curr_solver)
    x, opt, status = lp.solve()
    assert (status == OPTIMAL)
    assert (round(opt, 9) == -2.0)
    lp.set_ineq_constraint(0, [1, 1], 1.0)
    _, opt, status = lp.solve()
    assert (status == OPTIMAL)
    assert (round(opt, 9) == -1.0)
    lp.set_ineq_constraint(0, [1, 1], 2.0)
    lp.set_objective_idx([[1, 0.0]])
    x, opt, _ = lp.solve()
    assert (round(opt, 9) == -1.0)
    assert (round(x[0], 9) == 1.0)


def test_lp_unbounded_infeasible(curr_solver):
    """Test status codes of unbounded and infeasible LPs."""
    lp = fv.MILP_LP(c=[-1, 0], A_eq=sparse.csr_matrix([[1, -1]]), b_eq=[0], lb=[0, 0], ub=[inf, inf], solver=curr_solver)
    _, _, status = lp.solve()
    assert (status == UNBOUNDED)
    lp.add_ineq_constraints(sparse.csr_matrix([[1, 0]]), [-1])
    _, _, status = lp.solve()
    assert (status == INFEASIBLE)


def test_indicator_constraints(curr_solver):
    """Test a MILP with an indicator constraint: z = 0 -> x <= 0."""
    ic = fv.IndicatorConstraints([1], sparse.csr_matrix([[1, 0]]), [0], 'L', [0])
    milp = fv.MILP_LP(c=[-1, 5],
                      A_ineq=sparse.csr_matrix((0, 2)),
                      b_ineq=[],
                      lb=[0, 0],
                      ub=[10, 1],
                      vtype='CB',
                      indic_constr=ic,
                      solver=curr_solver)
    x, opt, status = milp.solve()
    assert (status == OPTIMAL)
    assert (round(opt, 6) == -5.0)
    assert (x[1] == 1)


def test_model_view(model_loop):
    """Test the read-only view on a model."""
    view = fv.ModelView(model_loop)
    assert (view.numr == 8)
    assert (view.S.shape == (5, 8))
    assert (view.osense == MAXIMIZE)
    assert ([view.reaction_ids[i] for i in view.internal_reactions()] == ['R1', 'R2', 'R6', 'R3', 'R4', 'R5'])
    assert (view.index(['R4', 'EX_A']) == [5, 0])
    with pytest.raises(fv.InvalidInput):
        view.index(['R4', 'R7'])


def test_model_view_inconsistent_bounds(model_loop):
    """Test that lower bounds above upper bounds are rejected."""
    model_loop.reactions.R2._lower_bound = 2.0
    with pytest.raises(fv.InvalidInput):
        fv.ModelView(model_loop)


def test_parse_constraints():
    """Test parsing of constraints in string and list form."""
    reaction_ids = ['r1', 'r2', 'r3', 'r4']
    constr = fv.parse_constraints('r1 + 3*r2 = 0.3, -5 r3 - r4 <= -0.5', reaction_ids)
    assert (constr == [[{'r1': 1.0, 'r2': 3.0}, '=', 0.3], [{'r3': -5.0, 'r4': -1.0}, '<=', -0.5]])
    assert (fv.parse_constraints([[{'r1': 2}, '>=', 1]], reaction_ids) == [[{'r1': 2}, '>=', 1.0]])
    A_ineq, b_ineq, A_eq, b_eq = fv.lineqlist2mat(constr + [[{'r1': 2}, '>=', 1]], reaction_ids)
    assert (A_ineq.toarray().tolist() == [[0, 0, -5, -1], [-2, 0, 0, 0]])
    assert (b_ineq == [-0.5, -1.0])
    assert (A_eq.toarray().tolist() == [[1, 3, 0, 0]])
    assert (b_eq == [0.3])
    with pytest.raises(fv.InvalidInput):
        fv.parse_constraints('r1 + r5 <= 2', reaction_ids)
    with pytest.raises(fv.InvalidInput):
        fv.parse_constraints('r1 + r2', reaction_ids)


def test_options():
    """Test defaults and validation of FVA options."""
    options = fv.FVAOptions()
    assert (options[OPT_PERCENTAGE] == 90.0)
    assert (options[METHOD] == LOOPS_ALLOWED)
    assert (options[MIN_NORM] is None)
    assert (options[THREADS] == 1)
    assert (fv.FVAOptions(allow_loops=False)[METHOD] == ORIGINAL)
    assert (fv.FVAOptions(allow_loops=False, method=LLC_NS)[METHOD] == LLC_NS)
    assert (fv.FVAOptions(rxn_name_list='R1')[RXN_NAME_LIST] == ['R1'])
    assert (fv.FVAOptions(return_fluxes=True)[MIN_NORM] == FBA)
    assert (fv.FVAOptions(osense='min')[OSENSE] == MINIMIZE)
    with pytest.raises(fv.InvalidInput):
        fv.FVAOptions(opt_perc=90)
    with pytest.raises(fv.InvalidInput):
        fv.FVAOptions(opt_percentage=0)
    with pytest.raises(fv.InvalidInput):
        fv.FVAOptions(heuristics=4)
    with pytest.raises(fv.InvalidInput):
        fv.FVAOptions(min_norm='3-norm')
    with pytest.raises(fv.UnsupportedLoopMethod):
        fv.FVAOptions(method='fancy')


def test_optimality_threshold():
    """Test relaxation and rounding of the optimum."""
    assert (fv.optimality_threshold(2.0, 100, MAXIMIZE) == 2.0)
    assert (abs(fv.optimality_threshold(2.0, 90, MAXIMIZE) - 1.8) <= 1e-9)
    assert (abs(fv.optimality_threshold(-2.0, 90, MAXIMIZE) + 2.2) <= 1e-9)
    assert (abs(fv.optimality_threshold(2.0, 90, MINIMIZE) - 2.2) <= 1e-9)
    assert (fv.optimality_threshold(1.0 / 3.0, 100, MAXIMIZE) <= 1.0 / 3.0)
    assert (fv.optimality_threshold(1.0 / 3.0, 100, MINIMIZE) >= 1.0 / 3.0)


def test_time_limit(curr_solver):
    """Test that the time limit is taken from the solver parameters."""
    params = {'time_limit': 30}
    lp = fv.MILP_LP(c=[-1], A_ineq=sparse.csr_matrix([[1]]), b_ineq=[1], lb=[0], ub=[2], solver=curr_solver,
                    solver_params=params)
    assert (lp.tlim == 30)
    assert (params == {'time_limit': 30})
    _, opt, status = lp.solve()
    assert (status == OPTIMAL and round(opt, 9) == -1.0)


@pytest.mark.skipif(GLPK not in fv.avail_solvers, reason="GLPK not installed")
def test_glpk_params(caplog):
    """Test that GLPK parameters are set and unknown parameters are ignored with a warning."""
    with caplog.at_level(logging.WARNING):
        lp = fv.MILP_LP(c=[-1], A_ineq=sparse.csr_matrix([[1]]), b_ineq=[1], lb=[0], ub=[2], solver=GLPK,
                        solver_params={'msg_lev': 0, 'it_lim': 1000, 'bogus': 1})
    assert (lp.backend.lp_params.it_lim == 1000)
    assert (any('bogus' in r.getMessage() for r in caplog.records))
    _, opt, status = lp.solve()
    assert (status == OPTIMAL and round(opt, 9) == -1.0)


@pytest.mark.skipif(GLPK not in fv.avail_solvers, reason="GLPK not installed")
def test_glpk_params_fva(model_loop, caplog):
    """Test that solver parameters are forwarded by the FVA without changing the result."""
    reference = fv.flux_variability(model_loop, solver=GLPK, rxn_name_list=['R1', 'EX_E'])
    with caplog.at_level(logging.WARNING):
        result = fv.flux_variability(model_loop,
                                     solver=GLPK,
                                     rxn_name_list=['R1', 'EX_E'],
                                     solver_params={
                                         'msg_lev': 0,
                                         'bogus': 1,
                                         'time_limit': 60
                                     })
    assert (any('bogus' in r.getMessage() for r in caplog.records))
    assert (result.minimum == reference.minimum)
    assert (result.maximum == reference.maximum)
