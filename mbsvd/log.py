
def setup_args_log(ap, **args):
    ap.add_argument("--log-level", dest="log_level", default="INFO",
                    choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    ap.add_argument("--log-name", dest="log_name", default="mbsvd")
    return ap

def setup_logging(**args):
    import logging
    level = getattr(logging, args.get("log_level") or "INFO")
    logging.basicConfig(level=level,
                        format="%(asctime)s %(name)s %(levelname)s: %(message)s")
    logging.getLogger(args.get("log_name") or "mbsvd").setLevel(level)
    return args
