import pytest
from cobra import Model, Reaction, Metabolite
from fluxvariability.names import *

# Initialize an empty list for solvers
solvers = [GLPK]

# Add GUROBI to the list if the gurobipy package is installed
try:
    import gurobipy
    solvers.append(GUROBI)
except ImportError:
    pass  # GUROBI is not installed


@pytest.fixture(params=solvers, scope="session")
def curr_solver(request: pytest.FixtureRequest) -> str:
    """Provide session-level fixture for parametrized solver names."""
    return request.param


@pytest.fixture(params=[ORIGINAL, FASTSNP, LLC_NS, LLC_EFM], scope="session")
def loop_method(request: pytest.FixtureRequest) -> str:
    """Provide session-level fixture for loop exclusion methods."""
    return request.param


def build_model(model_id, reactions, objective):
    """Build a cobra model from (id, stoichiometry, lower bound, upper bound) tuples."""
    model = Model(model_id)
    mets = {}
    rxns = []
    for rid, stoich, lb, ub in reactions:
        for m in stoich:
            if m not in mets:
                mets[m] = Metabolite(m, compartment='c')
        r = Reaction(rid, lower_bound=lb, upper_bound=ub)
        r.add_metabolites({mets[m]: v for m, v in stoich.items()})
        rxns += [r]
    model.add_reactions(rxns)
    model.objective = objective
    return model


@pytest.fixture
def model_loop():
    """Small network with one internal loop (R3, R4, R5) and a branch (R2, R6).

    Maximal production of E is 1. At 90% of the optimum with loops allowed:
    EX_A [-1, -0.9], R1 [0.4, 1], R2 [0, 0.5], R6 [0, 0.5], R3 [0, 1000], R4 [-999.1, 1],
    R5 [-999.1, 1], EX_E [0.9, 1]. Without loops: R3, R4, R5 [0, 1].
    """
    return build_model('model_loop', [
        ('EX_A', {'A': -1}, -1.0, 1000.0),
        ('R1', {'A': -1, 'B': 1}, 0.0, 1000.0),
        ('R2', {'A': -1, 'C': 1}, 0.0, 0.5),
        ('R6', {'C': -1, 'B': 1}, 0.0, 1000.0),
        ('R3', {'B': -1, 'E': 1}, 0.0, 1000.0),
        ('R4', {'B': -1, 'D': 1}, -1000.0, 1000.0),
        ('R5', {'D': -1, 'E': 1}, -1000.0, 1000.0),
        ('EX_E', {'E': -1}, 0.0, 1000.0),
    ], 'EX_E')


@pytest.fixture
def model_two_loop():
    """Network with a loop of two parallel reactions R2a (irreversible) and R2b (reversible).

    Maximal production of C is 10. At 90% of the optimum with loops allowed:
    R2a [0, 1000], R2b [-991, 10]. Without loops: R2a [0, 10], R2b [0, 10].
    """
    return build_model('model_two_loop', [
        ('EX_A', {'A': 1}, 0.0, 10.0),
        ('R1', {'A': -1, 'B': 1}, 0.0, 1000.0),
        ('R2a', {'B': -1, 'C': 1}, 0.0, 1000.0),
        ('R2b', {'B': -1, 'C': 1}, -1000.0, 1000.0),
        ('EX_C', {'C': -1}, 0.0, 1000.0),
    ], 'EX_C')


@pytest.fixture
def model_textbook():
    """E. coli core model shipped with COBRApy."""
    from cobra.io import load_model
    return load_model("textbook")
