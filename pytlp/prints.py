from os import get_terminal_size
import sys

COLOR = sys.stdout.isatty()
try: terminal_width = min(get_terminal_size(0)[0], 60)
except OSError: terminal_width = 60

def colored(*values:str, color) -> str:
    return f'\x1b[38;5;{color}m{" ".join(values)}\x1b[0m' if COLOR and color else ' '.join(values)

def print_separator(color=None) -> None: print(colored('-'*terminal_width, color=color))

def print_header(*values:str, color=None) -> None:
    head = ' '.join(values)
    sep = '-'*max(((terminal_width - len(head)) // 2 - 1), 3)
    print('\n'+colored(f'{sep} {head} {sep}', color=color)+'\n')

def print_colon(previous_value:str, *next_values:object, color=None, file=None) -> None:
    print(colored(previous_value, color=color)+':', *next_values, file=file)

def print_value(name:str, value:object) -> None: print(f'{name:<44} = {value if value is not None else "(not available)"}')

def print_block(block_title:str, *lines:object, color=None) -> None:
    print_header(block_title, color=color)
    for line in lines: print(line)

def print_error(*values:object) -> None: print_colon('Error', *values, color=9, file=sys.stderr)

def print_info(*values:object) -> None: print_colon('Info', *values, color=12)

def print_warning(*values:object) -> None: print_colon('Warning', *values, color=11, file=sys.stderr)
