import numpy as np
import scipy.sparse
import pytest

from mbsvd.datasource import MatSource, FileSource, IteratorSource
from mbsvd.io import save_matrix


def _drain(ds):
    ds.reset()
    return [mats for mats in ds]


def test_matsource_batches_cover_rows(small):
    ds = MatSource(small, MatSource.Options(batch_size=10))
    ds.init()
    assert ds.n_features == 6
    batches = _drain(ds)
    assert [b[0].shape[0] for b in batches] == [10, 10, 5]
    assert ds.progress() == 1.
    np.testing.assert_array_equal(np.vstack([b[0] for b in batches]), small)
    # a second pass starts over
    assert len(_drain(ds)) == 3


def test_matsource_sparse_and_multiple_mats(small):
    S = scipy.sparse.csc_matrix(small)
    ds = MatSource([S, small[:, :2]], MatSource.Options(batch_size=20))
    ds.init()
    first = ds.next()
    assert scipy.sparse.issparse(first[0]) and first[0].format == "csr"
    assert first[1].shape == (20, 2)


def test_matsource_rejects_bad_input(small):
    with pytest.raises(ValueError):
        MatSource(np.zeros((0, 4))).init()
    with pytest.raises(ValueError):
        MatSource([small, small[:3]]).init()
    with pytest.raises(ValueError):
        MatSource(small, MatSource.Options(batch_size=0)).init()


@pytest.fixture
def shards(tmp_path, small):
    names = [str(tmp_path / "part0.npz"), str(tmp_path / "part1.h5ad"), str(tmp_path / "part2.npz")]
    save_matrix(names[0], small[:9])
    save_matrix(names[1], small[9:20])
    save_matrix(names[2], scipy.sparse.csr_matrix(small[20:]))
    return names


@pytest.mark.parametrize("lookahead", [0, 2])
def test_filesource_reads_every_row_in_order(shards, small, lookahead):
    ds = FileSource(FileSource.Options(fnames=shards, batch_size=4, lookahead=lookahead))
    ds.init()
    assert ds.n_features == 6
    assert ds.n_obs == 25
    blocks = []
    for mats in _drain(ds):
        M = mats[0]
        assert M.shape[0] <= 4
        blocks.append(M.toarray() if scipy.sparse.issparse(M) else np.asarray(M))
    np.testing.assert_allclose(np.vstack(blocks), small)
    assert ds.progress() == 1.
    # files never straddle a batch
    assert [b.shape[0] for b in blocks] == [4, 4, 1, 4, 4, 3, 4, 1]
    ds.close()


def test_filesource_enumerates_names(tmp_path, small):
    pattern = str(tmp_path / "data%d.npz")
    names = FileSource.simple_enum(pattern, 0, 3)
    assert names[1].endswith("data1.npz")
    assert FileSource.simple_enum("x{}.h5ad", 2, 4) == ["x2.h5ad", "x3.h5ad"]
    for i, name in enumerate(names):
        save_matrix(name, small[i * 5:(i + 1) * 5])
    ds = FileSource(FileSource.Options(fnames=lambda i: pattern % i, lookahead=0))
    ds.init()
    assert ds.fnames == names
    assert ds.n_obs == 15


def test_filesource_errors(tmp_path, small):
    with pytest.raises(ValueError):
        FileSource().init()
    with pytest.raises(FileNotFoundError):
        FileSource(FileSource.Options(fnames=[str(tmp_path / "missing.npz")])).init()
    save_matrix(str(tmp_path / "a.npz"), small)
    save_matrix(str(tmp_path / "b.npz"), small[:, :3])
    ds = FileSource(FileSource.Options(fnames=[str(tmp_path / "a.npz"), str(tmp_path / "b.npz")], lookahead=0))
    with pytest.raises(ValueError, match="features"):
        ds.init()


def test_iteratorsource_list_and_callable(small):
    blocks = [small[:10], small[10:]]
    ds = IteratorSource(blocks)
    ds.init()
    assert ds.n_features == 6
    assert sum(b[0].shape[0] for b in _drain(ds)) == 25
    assert sum(b[0].shape[0] for b in _drain(ds)) == 25

    ds = IteratorSource(lambda: ((b, slice(0, b.shape[0])) for b in blocks),
                        IteratorSource.Options(n_obs=25))
    ds.init()
    out = _drain(ds)
    assert len(out) == 2
    assert out[0][0] is blocks[0]
    assert ds.progress() == 1.


def test_iteratorsource_rejects_one_shot_iterators(small):
    with pytest.raises(ValueError):
        IteratorSource(iter([small])).init()
    with pytest.raises(ValueError):
        IteratorSource([]).init()
