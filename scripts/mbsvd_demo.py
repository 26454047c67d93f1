#!/usr/bin/env python3

if __name__ == "__main__":
        import argparse
        import logging
        import numpy as np
        import mbsvd
        ap = argparse.ArgumentParser(description="Minibatch SVD on a synthetic low-rank matrix, checked against eigh of the covariance")
        ap.add_argument("--n-obs", dest="n_obs", type=int, default=20000)
        ap.add_argument("--n-features", dest="n_features", type=int, default=200)
        ap.add_argument("--rank", type=int, default=20)
        ap.add_argument("--noise", type=float, default=0.01)
        ap.add_argument("--decay", type=float, default=0.7)
        ap.add_argument("--tsv", default=None, help="Write the comparison table here")
        args = mbsvd.parse_args(ap, ["log", "svd"])
        logger = logging.getLogger(args["log_name"])
        sw = mbsvd.stopwatch(args["log_name"])
        with sw("Generating %d x %d matrix of rank %d" % (args["n_obs"], args["n_features"], args["rank"])):
                X = mbsvd.synthetic_lowrank(n_obs=args["n_obs"], n_features=args["n_features"],
                                            rank=args["rank"], noise=args["noise"],
                                            decay=args["decay"], seed=args["seed"])
        nn, opts = mbsvd.learner(X, dim=args["dim"], **mbsvd.learner_options(args))
        logger.info("Options: %s" % opts)
        nn.train()
        with sw("Comparing with eigendecomposition of X'X"):
                df = mbsvd.compare(nn.model, X)
        logger.info("Component agreement:\n%s" % df.to_string())
        logger.info("Mean |cosine| %.6f, max relative eigenvalue error %.3g" % (
                np.mean(np.abs(df["cosine"])), np.nanmax(df["rel_error"])))
        if args["tsv"] is not None:
                df.to_csv(args["tsv"], sep="\t")
        with sw("Projecting onto singular vectors"):
                pp, _ = mbsvd.predictor(nn.model, X)
                proj = pp.predict()[0]
        logger.info("Projection has shape %s" % (proj.shape,))
