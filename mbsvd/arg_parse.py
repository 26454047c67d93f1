
from .log import setup_args_log, setup_logging

def setup_args_learner(ap):
    ap.add_argument("-n", "--npasses", type=int, default=2)
    ap.add_argument("--eval-step", dest="eval_step", type=int, default=11)
    ap.add_argument("--batch-size", dest="batch_size", type=int, default=None)
    ap.add_argument("--progress", dest="progress_bar", action="store_true")
    return ap

def setup_args_svd(ap):
    ap.add_argument("-d", "--dim", type=int, default=50)
    ap.add_argument("--minibatch-passes", dest="minibatch_passes", type=int, default=1)
    ap.add_argument("--no-ritz", dest="ritz", action="store_false")
    ap.add_argument("--seed", type=int, default=0)
    ap.set_defaults(ritz=True)
    return ap

def learner_options(args):
    """Subset of parsed args accepted by the svd factories"""
    keys = ["npasses", "eval_step", "batch_size", "minibatch_passes", "ritz", "seed", "progress_bar"]
    return {k: args[k] for k in keys if args.get(k) is not None}

def parse_args(ap, which=["log", "svd"]):
    if "learner" in which or "svd" in which:
        ap = setup_args_learner(ap)
    if "svd" in which:
        ap = setup_args_svd(ap)
    if "log" in which or "logging" in which:
        ap = setup_args_log(ap)
    args = vars(ap.parse_args())
    if "log" in which or "logging" in which:
        args = setup_logging(**args)
    return args
