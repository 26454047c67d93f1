
from typing import Union
from pathlib import Path
_PathLike=Union[str, Path]

def _ext(path:_PathLike) -> str:
    import os
    return os.path.splitext(str(path))[1].lower()

def _check_ext(path:_PathLike):
    if _ext(path) not in (".h5ad", ".npz"):
        raise ValueError("Unsupported matrix file \"%s\": expected .h5ad or .npz" % path)

def load_matrix(path:_PathLike, retry:int=2, wait:float=5):
    """Read the matrix stored in an .h5ad (X) or .npz file.
    Sparse .npz files written by scipy come back as CSR."""
    import os
    import logging
    _check_ext(path)
    if not os.path.isfile(path):
        raise FileNotFoundError("Matrix file %s does not exist" % path)
    try:
        if _ext(path) == ".h5ad":
            import anndata
            X = anndata.read_h5ad(path).X
        else:
            X = _load_npz(path)
    except (OSError, KeyError):
        if retry <= 0:
            raise
        import time
        ### NFS error
        logging.getLogger("mbsvd").warning("Could not read %s, sleeping %g seconds and retrying..." % (path, wait))
        time.sleep(wait)
        return load_matrix(path, retry=retry-1, wait=wait)
    return X

def _load_npz(path:_PathLike):
    import numpy as np
    import scipy.sparse
    with np.load(path, allow_pickle=False) as F:
        if "format" in F.files and "indptr" in F.files:
            return scipy.sparse.load_npz(path).tocsr()
        if "X" in F.files:
            return F["X"]
        return F[F.files[0]]

def save_matrix(path:_PathLike, X, compression:int=6):
    import numpy as np
    import scipy.sparse
    _check_ext(path)
    if _ext(path) == ".h5ad":
        import anndata
        if not scipy.sparse.issparse(X):
            X = np.asarray(X)
        anndata.AnnData(X).write_h5ad(path, compression="gzip", compression_opts=compression)
    elif scipy.sparse.issparse(X):
        scipy.sparse.save_npz(path, scipy.sparse.csr_matrix(X), compressed=True)
    else:
        np.savez_compressed(path, X=np.asarray(X))
    return path

def matrix_shape(path:_PathLike):
    """Shape of the stored matrix; .h5ad files are not loaded into memory"""
    import os
    _check_ext(path)
    if not os.path.isfile(path):
        raise FileNotFoundError("Matrix file %s does not exist" % path)
    if _ext(path) == ".h5ad":
        import h5py
        with h5py.File(path, "r") as F:
            X = F["X"]
            if isinstance(X, h5py.Group):
                return tuple(int(x) for x in X.attrs["shape"])
            return tuple(X.shape)
    return tuple(_load_npz(path).shape)
