from pipewright.cli.main import main

main()
