import numpy as np
import scipy.sparse
import pytest

import mbsvd
from mbsvd.svd import SVD, learner, file_learner, predictor, file_predictor
from mbsvd.validate import reference_eig, compare
from mbsvd.io import save_matrix, load_matrix


def test_learner_matches_eigendecomposition(lowrank):
    nn, opts = learner(lowrank, dim=3, npasses=10, seed=1)
    assert opts.batch_size == 101
    nn.train()
    df = compare(nn.model, lowrank)
    assert np.all(df["cosine"] > 0.9999)
    assert np.all(df["rel_error"] < 1e-4)
    evals, _ = reference_eig(lowrank, 3)
    np.testing.assert_allclose(nn.model.singular_values, np.sqrt(evals), rtol=1e-4)


def test_q_stays_orthonormal(lowrank):
    nn, _ = learner(lowrank, dim=4, npasses=3, seed=0)
    nn.mixins = [mbsvd.OrthogonalityScore()]
    nn.train()
    Q = nn.model.modelmats[0]
    np.testing.assert_allclose(Q.T.dot(Q), np.eye(4), atol=1e-10)
    # orthogonality mixin score is the last column of the results
    assert np.all(nn.results[:, -1] > -1e-8)


def test_scores_improve_as_q_converges(lowrank):
    nn, _ = learner(lowrank, dim=3, npasses=6, seed=2, eval_step=5)
    nn.train()
    res = nn.results
    assert np.all(res[:, 2] <= 0)
    first = res[res[:, 0] == 0, 2].mean()
    last = res[res[:, 0] == 5, 2].mean()
    assert last > first


def test_without_ritz_or_minibatch_passes(lowrank):
    nn, _ = learner(lowrank, dim=3, npasses=15, seed=4, ritz=False, minibatch_passes=0)
    nn.train()
    df = compare(nn.model, lowrank)
    assert np.all(df["cosine"] > 0.999)
    assert np.all(df["rel_error"] < 1e-3)


def test_full_passes_do_not_depend_on_batching(lowrank):
    a, _ = learner(lowrank, dim=3, npasses=3, seed=5, minibatch_passes=0, batch_size=64)
    b, _ = learner(lowrank, dim=3, npasses=3, seed=5, minibatch_passes=0, batch_size=1000)
    a.train()
    b.train()
    np.testing.assert_allclose(a.model.modelmats[0], b.model.modelmats[0], atol=1e-8)
    np.testing.assert_allclose(a.model.modelmats[1], b.model.modelmats[1], rtol=1e-8)


def test_sparse_input_matches_dense(lowrank):
    S = scipy.sparse.csr_matrix(lowrank)
    a, _ = learner(lowrank, dim=2, npasses=2, seed=6)
    b, _ = learner(S, dim=2, npasses=2, seed=6)
    a.train()
    b.train()
    np.testing.assert_allclose(a.model.modelmats[0], b.model.modelmats[0], atol=1e-8)


def test_predictor_projects_onto_q(lowrank):
    nn, _ = learner(lowrank, dim=3, npasses=2, seed=7)
    nn.train()
    pp, popts = predictor(nn.model, lowrank)
    assert popts.dim == 3
    proj = pp.predict()[0]
    assert proj.shape == (lowrank.shape[0], 3)
    np.testing.assert_allclose(proj, lowrank.dot(nn.model.modelmats[0]))
    np.testing.assert_allclose(nn.model.transform(lowrank), proj)
    np.testing.assert_array_equal(nn.model.components, nn.model.modelmats[0].T)
    # predicting does not touch the trained model or its copy
    np.testing.assert_array_equal(pp.model.modelmats[0], nn.model.modelmats[0])
    assert pp.model.modelmats[0] is not nn.model.modelmats[0]


def test_file_learner_and_predictor(tmp_path, lowrank):
    pattern = str(tmp_path / "shard%d.npz")
    fnames = mbsvd.FileSource.simple_enum(pattern, 0, 3)
    for i, f in enumerate(fnames):
        save_matrix(f, lowrank[i * 1000:(i + 1) * 1000])
    fn, fopts = file_learner(fnames, dim=3, npasses=3, seed=8, minibatch_passes=0, batch_size=250)
    mn, _ = learner(lowrank, dim=3, npasses=3, seed=8, minibatch_passes=0)
    fn.train()
    mn.train()
    np.testing.assert_allclose(fn.model.modelmats[0], mn.model.modelmats[0], atol=1e-8)

    ofnames = [str(tmp_path / ("proj%d.h5ad" % i)) for i in range(2)]
    pp, _ = file_predictor(fn.model, fnames, ofnames, rows_per_file=2000)
    written = pp.predict()
    assert written == ofnames
    proj = np.vstack([np.asarray(load_matrix(f)) for f in written])
    np.testing.assert_allclose(proj, lowrank.dot(fn.model.modelmats[0]), rtol=1e-6, atol=1e-8)


def test_svd_errors(lowrank):
    with pytest.raises(ValueError, match="dim"):
        learner(lowrank, dim=41)[0].train()
    model = SVD(SVD.Options(dim=2))
    with pytest.raises(RuntimeError):
        model.init()
    with pytest.raises(RuntimeError):
        model.dobatch([lowrank], 0, 0)
    with pytest.raises(RuntimeError):
        model.singular_values
    nn, _ = learner(lowrank, dim=2, npasses=1)
    nn.train()
    with pytest.raises(ValueError, match="features"):
        predictor(nn.model, lowrank[:, :10])[0].predict()


def test_failed_runs_shut_down_the_file_pool(tmp_path, lowrank):
    shard = str(tmp_path / "narrow.npz")
    save_matrix(shard, lowrank[:100, :10])
    nn, _ = learner(lowrank, dim=3, npasses=1, seed=9)
    nn.train()
    pp, _ = file_predictor(nn.model, [shard], [str(tmp_path / "out.npz")], lookahead=2)
    with pytest.raises(ValueError, match="features"):
        pp.predict()
    assert pp.datasource._pool is None

    fn, _ = file_learner([shard], dim=11, lookahead=2)
    with pytest.raises(ValueError, match="dim"):
        fn.train()
    assert fn.datasource._pool is None


def test_factories_accept_a_list_of_matrices(lowrank):
    nn, opts = learner([lowrank, lowrank[:, :2]], dim=2, npasses=1, seed=10)
    assert opts.batch_size == 101
    nn.train()
    pp, popts = predictor(nn.model, [lowrank])
    assert popts.batch_size == 101
    np.testing.assert_allclose(pp.predict()[0], lowrank.dot(nn.model.modelmats[0]))
