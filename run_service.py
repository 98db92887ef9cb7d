#!/usr/bin/env python3
from control_api.main import main


if __name__ == '__main__':
    main()
