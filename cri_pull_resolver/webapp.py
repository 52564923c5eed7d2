import aiohttp.web

import cri_pull_resolver.handlers
import cri_pull_resolver.service
import cri_pull_resolver.store


def app(config, store=None, executor=None) -> aiohttp.web.Application:
    """Construct the image service web application."""

    if store is None:
        store = cri_pull_resolver.store.MemoryImageStore()

    application = aiohttp.web.Application(
        middlewares=[
            cri_pull_resolver.handlers.error_middleware,
        ])

    # Application state singletons
    application['config'] = config
    application['service'] = cri_pull_resolver.service.ImageService(config, store, executor)

    application.router.add_post('/images/status', cri_pull_resolver.handlers.image_status_handler)
    application.router.add_post('/images/plan', cri_pull_resolver.handlers.pull_plan_handler)
    application.router.add_post('/images/pull', cri_pull_resolver.handlers.pull_image_handler)
    return application
