
from .options import Options as _Options

def _vstack(blocks):
    import numpy as np
    import scipy.sparse
    if any(scipy.sparse.issparse(b) for b in blocks):
        return scipy.sparse.vstack(blocks).tocsr()
    return np.vstack(blocks)

class DataSink:
    class Options(_Options):
        pass

    def __init__(self, opts=None):
        self.opts = opts if opts is not None else self.Options()

    def init(self):
        pass

    def put(self, mats):
        raise NotImplementedError

    def close(self):
        pass

class MatSink(DataSink):
    """Keeps every output block; mats holds the row-stacked result after close()"""
    class Options(DataSink.Options):
        pass

    def init(self):
        self.blocks = []
        self.mats = None

    def put(self, mats):
        self.blocks.append(list(mats))

    def close(self):
        if len(self.blocks) == 0:
            self.mats = []
        else:
            self.mats = [_vstack([b[i] for b in self.blocks]) for i in range(len(self.blocks[0]))]
        self.blocks = []
        return self.mats

class FileSink(DataSink):
    """Writes output blocks of rows_per_file rows to successive names in ofnames.
    Only the first output matrix is written."""
    class Options(DataSink.Options):
        ofnames = None
        rows_per_file = 100000
        compression = 6

    def _ofname(self, i):
        ofnames = self.opts.ofnames
        if ofnames is None:
            raise ValueError("FileSink needs opts.ofnames")
        if callable(ofnames):
            return ofnames(i)
        if i >= len(ofnames):
            raise ValueError("FileSink ran out of output names after %d files" % len(ofnames))
        return ofnames[i]

    def init(self):
        self.blocks = []
        self.nrows = 0
        self.written = []

    def put(self, mats):
        block = list(mats)[0]
        self.blocks.append(block)
        self.nrows += block.shape[0]
        if self.nrows >= self.opts.rows_per_file:
            self.flush()

    def flush(self):
        import logging
        from .io import save_matrix
        if len(self.blocks) == 0:
            return
        fname = self._ofname(len(self.written))
        save_matrix(fname, _vstack(self.blocks), compression=self.opts.compression)
        logging.getLogger("mbsvd").debug("Wrote %d rows to %s" % (self.nrows, fname))
        self.written.append(fname)
        self.blocks = []
        self.nrows = 0

    def close(self):
        self.flush()
        return self.written
