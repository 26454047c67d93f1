#!/usr/bin/env python3

if __name__ == "__main__":
        import argparse
        import logging
        import os
        import numpy as np
        import mbsvd
        ap = argparse.ArgumentParser(description="Minibatch SVD over .h5ad/.npz shards")
        ap.add_argument("-i", "--input", dest="fnames", required=True, nargs="+")
        ap.add_argument("-o", "--output", required=True, help="Output .npz with Q and singular values")
        ap.add_argument("--project", default=None,
                        help="Output pattern for projected shards, e.g. proj%%d.h5ad")
        ap.add_argument("--rows-per-file", dest="rows_per_file", type=int, default=100000)
        ap.add_argument("--lookahead", type=int, default=2)
        ap.add_argument("--compression", type=int, default=6)
        args = mbsvd.parse_args(ap, ["log", "svd"])
        logger = logging.getLogger(args["log_name"])
        sw = mbsvd.stopwatch(args["log_name"])
        missing = [f for f in args["fnames"] if not os.path.isfile(f)]
        if missing:
                raise FileNotFoundError("Input files do not exist: %s" % ",".join(missing))
        nn, opts = mbsvd.file_learner(args["fnames"], dim=args["dim"],
                                      lookahead=args["lookahead"],
                                      **mbsvd.learner_options(args))
        logger.info("Options: %s" % opts)
        nn.train()
        with sw("Writing %s" % args["output"]):
                np.savez_compressed(args["output"],
                                    Q=nn.model.modelmats[0],
                                    SV=nn.model.modelmats[1],
                                    singular_values=nn.model.singular_values,
                                    results=nn.results)
        if args["project"] is not None:
                pp, _ = mbsvd.file_predictor(nn.model, args["fnames"],
                                             lambda i: args["project"] % i,
                                             rows_per_file=args["rows_per_file"],
                                             compression=args["compression"],
                                             lookahead=args["lookahead"])
                written = pp.predict()
                logger.info("Wrote %d projected files" % len(written))
