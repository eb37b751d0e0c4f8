from whyslow.cli import main

main()
