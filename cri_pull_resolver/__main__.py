import logging

import aiohttp.web

import cri_pull_resolver.arguments
import cri_pull_resolver.config
import cri_pull_resolver.webapp


logger = logging.getLogger(__name__)


def main():

    args = cri_pull_resolver.arguments.arg_parser.parse_args()
    logging.basicConfig(level=args.log_level)

    config = cri_pull_resolver.config.load_config(args.config)
    logger.info('Sandbox image %s, default snapshotter %s', config.sandbox_image, config.snapshotter)

    aiohttp.web.run_app(
        cri_pull_resolver.webapp.app(config),
        host=args.host, port=args.port,
    )


if __name__ == '__main__':
    main()
