
def reference_eig(X, k:int):
    """Top-k eigenpairs of the full covariance X'X, largest first"""
    import numpy as np
    import scipy.linalg
    import scipy.sparse
    C = X.T.dot(X)
    if scipy.sparse.issparse(C):
        C = C.toarray()
    C = np.asarray(C, dtype=np.float64)
    n = C.shape[0]
    if k < 1 or k > n:
        raise ValueError("k must be in [1, %d], got %d" % (n, k))
    evals, evecs = scipy.linalg.eigh(C, subset_by_index=[n - k, n - 1])
    return evals[::-1], evecs[:, ::-1]

def align_signs(A, B):
    """Flip the columns of A whose dot product with the matching column of B is negative"""
    import numpy as np
    A = np.array(A, dtype=np.float64, copy=True)
    d = np.sum(A * B, axis=0)
    A[:, d < 0] *= -1
    return A

def compare(model, X, k:int=None):
    """Per-component agreement of a trained SVD model with eigh(X'X)"""
    import numpy as np
    import pandas as pd
    Q = model.modelmats[0]
    SV = model.modelmats[1]
    if k is None:
        k = Q.shape[1]
    evals, evecs = reference_eig(X, k)
    Qa = align_signs(Q[:, :k], evecs)
    cos = np.sum(Qa * evecs, axis=0) / (np.linalg.norm(Qa, axis=0) * np.linalg.norm(evecs, axis=0))
    rel = np.divide(np.abs(SV[:k] - evals), np.abs(evals),
                    out=np.full(k, np.nan), where=evals != 0)
    return pd.DataFrame({"eigenvalue": SV[:k],
                         "reference": evals,
                         "rel_error": rel,
                         "cosine": cos,
                         "singular_value": np.sqrt(np.clip(SV[:k], 0, None))},
                        index=pd.Index(np.arange(k), name="component"))

def synthetic_lowrank(n_obs:int=10000, n_features:int=200, rank:int=10,
                      noise:float=0.01, decay:float=0.7, seed:int=0):
    """X = U diag(s) V' + noise with s_i = n_obs**0.5 * decay**i"""
    import numpy as np
    from sklearn.utils import check_random_state
    rs = check_random_state(seed)
    rank = min(rank, n_obs, n_features)
    U, _ = np.linalg.qr(rs.standard_normal((n_obs, rank)))
    V, _ = np.linalg.qr(rs.standard_normal((n_features, rank)))
    s = np.sqrt(n_obs) * decay ** np.arange(rank)
    X = (U * s).dot(V.T)
    if noise > 0:
        X += noise * rs.standard_normal((n_obs, n_features))
    return X
