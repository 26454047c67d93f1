import numpy as np
import pytest

from mbsvd.validate import synthetic_lowrank


@pytest.fixture
def lowrank():
    # eigenvalues of X'X fall by 4x per component
    return synthetic_lowrank(n_obs=3000, n_features=40, rank=8, noise=0.01, decay=0.5, seed=0)


@pytest.fixture
def small():
    rs = np.random.RandomState(3)
    return rs.standard_normal((25, 6))
