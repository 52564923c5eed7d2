import argparse


arg_parser = argparse.ArgumentParser(prog='cri_pull_resolver')
arg_parser.add_argument('--config', help='YAML file with registry, runtime and decryption settings')
arg_parser.add_argument('--host', help='Address to listen on', default='127.0.0.1')
arg_parser.add_argument('--port', help='A port to listen on', type=int, default=9443)
arg_parser.add_argument('--log-level', help='Logging level', default='INFO',
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'])


__all__ = ['arg_parser']
