
from .options import Options as _Options

def _as_list(mats):
    if isinstance(mats, (list, tuple)):
        return list(mats)
    return [mats]

class DataSource:
    """Streams minibatches into a Learner. next() returns a list of
    row-aligned matrices; the model reads the first one."""
    class Options(_Options):
        batch_size = 10000

    def __init__(self, opts=None):
        self.opts = opts if opts is not None else self.Options()
        self.n_features = None

    def init(self):
        raise NotImplementedError

    def reset(self):
        raise NotImplementedError

    def has_next(self) -> bool:
        raise NotImplementedError

    def next(self):
        raise NotImplementedError

    def progress(self) -> float:
        return 0.

    def __iter__(self):
        while self.has_next():
            yield self.next()

class MatSource(DataSource):
    """Row blocks of one or more in-memory matrices (numpy or scipy.sparse)"""
    class Options(DataSource.Options):
        pass

    def __init__(self, mats, opts=None):
        super().__init__(opts)
        self.mats = _as_list(mats)
        self.here = 0

    def init(self):
        import scipy.sparse
        nrows = {m.shape[0] for m in self.mats}
        if len(nrows) != 1:
            raise ValueError("MatSource matrices must have the same number of rows, got %s" % sorted(nrows))
        if self.mats[0].shape[0] == 0 or self.mats[0].shape[1] == 0:
            raise ValueError("MatSource got an empty matrix of shape %s" % (self.mats[0].shape,))
        if self.opts.batch_size < 1:
            raise ValueError("batch_size must be positive, got %d" % self.opts.batch_size)
        self.mats = [m.tocsr() if scipy.sparse.issparse(m) else m for m in self.mats]
        self.n_obs = self.mats[0].shape[0]
        self.n_features = self.mats[0].shape[1]
        self.reset()

    def reset(self):
        self.here = 0

    def has_next(self) -> bool:
        return self.here < self.n_obs

    def next(self):
        end = min(self.here + self.opts.batch_size, self.n_obs)
        out = [m[self.here:end] for m in self.mats]
        self.here = end
        return out

    def progress(self) -> float:
        return self.here / self.n_obs

class FileSource(DataSource):
    """Minibatches read from a sharded set of .h5ad/.npz files.
    Up to lookahead files are read ahead of the current one in a thread pool."""
    class Options(DataSource.Options):
        fnames = None
        lookahead = 2

    def __init__(self, opts=None):
        super().__init__(opts)
        self._pool = None
        self._pending = {}

    @staticmethod
    def simple_enum(pattern:str, start:int, end:int):
        """["data0.h5ad", "data1.h5ad", ...] from "data%d.h5ad" or "data{}.h5ad" """
        if "%" in pattern:
            return [pattern % i for i in range(start, end)]
        return [pattern.format(i) for i in range(start, end)]

    def _fnames(self):
        fnames = self.opts.fnames
        if fnames is None:
            raise ValueError("FileSource needs opts.fnames")
        if isinstance(fnames, str):
            return [fnames]
        if callable(fnames):
            import os
            out = []
            while os.path.isfile(fnames(len(out))):
                out.append(fnames(len(out)))
            return out
        return list(fnames)

    def init(self):
        from .io import matrix_shape
        self.fnames = self._fnames()
        if len(self.fnames) == 0:
            raise ValueError("FileSource has no files to read")
        if self.opts.batch_size < 1:
            raise ValueError("batch_size must be positive, got %d" % self.opts.batch_size)
        shapes = [matrix_shape(f) for f in self.fnames]
        nfeat = {s[1] for s in shapes}
        if len(nfeat) != 1:
            raise ValueError("Files in FileSource disagree on the number of features: %s" % sorted(nfeat))
        self.n_features = nfeat.pop()
        self.file_rows = [s[0] for s in shapes]
        self.n_obs = sum(self.file_rows)
        if self.opts.lookahead > 0 and self._pool is None:
            from concurrent.futures import ThreadPoolExecutor
            self._pool = ThreadPoolExecutor(max_workers=self.opts.lookahead)
        self.reset()

    def _prefetch(self):
        from .io import load_matrix
        if self._pool is None:
            return
        for i in range(self.ifile, min(self.ifile + self.opts.lookahead + 1, len(self.fnames))):
            if i not in self._pending:
                self._pending[i] = self._pool.submit(load_matrix, self.fnames[i])

    def _load(self, i):
        import scipy.sparse
        from .io import load_matrix
        if i in self._pending:
            X = self._pending.pop(i).result()
        else:
            X = load_matrix(self.fnames[i])
        return X.tocsr() if scipy.sparse.issparse(X) else X

    def reset(self):
        for fut in self._pending.values():
            fut.cancel()
        self._pending = {}
        self.ifile = 0
        self.here = 0
        self.rows_read = 0
        self.current = None
        self._skip_empty()

    def _skip_empty(self):
        while self.ifile < len(self.fnames) and self.file_rows[self.ifile] == 0:
            self.ifile += 1

    def has_next(self) -> bool:
        return self.ifile < len(self.fnames)

    def next(self):
        if self.current is None:
            self._prefetch()
            self.current = self._load(self.ifile)
        end = min(self.here + self.opts.batch_size, self.current.shape[0])
        out = [self.current[self.here:end]]
        self.rows_read += end - self.here
        self.here = end
        if self.here >= self.current.shape[0]:
            self.current = None
            self.here = 0
            self.ifile += 1
            self._skip_empty()
        return out

    def progress(self) -> float:
        return self.rows_read / max(self.n_obs, 1)

    def close(self):
        if self._pool is not None:
            self._pool.shutdown(wait=True, cancel_futures=True)
            self._pool = None
            self._pending = {}

class IteratorSource(DataSource):
    """Wraps a list of matrices, or a zero-argument callable returning a fresh
    iterator for every pass, e.g.

        IteratorSource(lambda: AnnCollection({"data": adata}).iterate_axis(10000))

    Items are matrices, lists of matrices or (matrix, index) pairs."""
    class Options(DataSource.Options):
        n_obs = None

    def __init__(self, iterable, opts=None):
        super().__init__(opts)
        self.iterable = iterable
        self._it = None
        self._peek = None

    def _fresh(self):
        if callable(self.iterable):
            return iter(self.iterable())
        if iter(self.iterable) is self.iterable:
            raise ValueError("IteratorSource needs a list or a callable, a bare iterator can only be read once")
        return iter(self.iterable)

    @staticmethod
    def _unpack(item):
        import numpy as np
        if isinstance(item, tuple) and len(item) == 2 and (isinstance(item[1], (slice, range)) or (isinstance(item[1], np.ndarray) and item[1].ndim == 1)):
            item = item[0]
        mats = _as_list(item)
        return [m.X if hasattr(m, "X") else m for m in mats]

    def init(self):
        self.reset()
        if self._peek is None:
            raise ValueError("IteratorSource is empty")
        self.n_features = self._peek[0].shape[1]

    def reset(self):
        self._it = self._fresh()
        self.rows_read = 0
        self._advance()

    def _advance(self):
        try:
            self._peek = self._unpack(next(self._it))
        except StopIteration:
            self._peek = None

    def has_next(self) -> bool:
        return self._peek is not None

    def next(self):
        out = self._peek
        self.rows_read += out[0].shape[0]
        self._advance()
        return out

    def progress(self) -> float:
        if self.opts.n_obs:
            return min(self.rows_read / self.opts.n_obs, 1.)
        return 0. if self.has_next() else 1.
